from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from django.conf import settings
from django.core.exceptions import PermissionDenied

from portal.services.errors import SubmissionInProgress
from portal.services.form_state import FormState
from portal.services.validation import first_error_field, validate

logger = logging.getLogger(__name__)

AUTH_REQUIRED_MESSAGE = "Authentication required. Please log in again."
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."
GENERIC_FAILURE_MESSAGE = "An error occurred during submission"

AUTH_FAILURE_STATUSES = (401, 403)

SubmitHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


class SubmissionStatus(str, enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    AUTH_REQUIRED = "auth_required"
    VALIDATION_FAILED = "validation_failed"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    SESSION_EXPIRED = "session_expired"
    FAILED = "failed"


@dataclass(frozen=True)
class RedirectInstruction:
    """Navigate to `url` after `delay_seconds`. How is up to the host."""

    url: str
    delay_seconds: float


@dataclass(frozen=True)
class SubmissionResult:
    status: SubmissionStatus
    field_errors: Dict[str, str] = field(default_factory=dict)
    form_error: str = ""
    focus_field: Optional[str] = None
    redirect: Optional[RedirectInstruction] = None
    response: Any = None

    @property
    def ok(self) -> bool:
        return self.status is SubmissionStatus.SUCCEEDED


def http_status(exc: BaseException) -> Optional[int]:
    """
    Best-effort HTTP status of a failed submit.
    Looks at exc.status_code / exc.status, then exc.response.status_code / .status.
    """
    if isinstance(exc, PermissionDenied):
        return 403

    candidates = [exc, getattr(exc, "response", None)]
    for obj in candidates:
        if obj is None:
            continue
        for attr in ("status_code", "status"):
            value = getattr(obj, attr, None)
            if isinstance(value, int) and not isinstance(value, bool):
                return value
            if isinstance(value, str) and value.isdigit():
                return int(value)
    return None


class SubmissionOrchestrator:
    """
    Drives one submit attempt:

        IDLE -> VALIDATING -> AUTH_REQUIRED | VALIDATION_FAILED | SUBMITTING
        SUBMITTING -> SUCCEEDED | SESSION_EXPIRED | FAILED

    Never raises for a failed submit; every outcome ends up in the
    SubmissionResult and in the FormState.
    """

    def __init__(
        self,
        state: FormState,
        *,
        is_authenticated: Callable[[], bool],
        submit_handler: SubmitHandler,
        on_redirect: Optional[Callable[[RedirectInstruction], None]] = None,
        login_url: Optional[str] = None,
        redirect_delay: Optional[float] = None,
    ) -> None:
        self.state = state
        self.is_authenticated = is_authenticated
        self.submit_handler = submit_handler
        self.on_redirect = on_redirect
        self.login_url = login_url or getattr(settings, "LOGIN_URL", "/login/")
        if redirect_delay is None:
            redirect_delay = getattr(settings, "PORTAL_AUTH_REDIRECT_DELAY", 2)
        self.redirect_delay = float(redirect_delay)
        self.status = SubmissionStatus.IDLE

    @property
    def is_submitting(self) -> bool:
        return self.status is SubmissionStatus.SUBMITTING

    def _emit_redirect(self) -> RedirectInstruction:
        instruction = RedirectInstruction(url=self.login_url, delay_seconds=self.redirect_delay)
        if self.on_redirect is not None:
            self.on_redirect(instruction)
        return instruction

    def _blocked_on_auth(self, status: SubmissionStatus, message: str) -> SubmissionResult:
        self.status = status
        self.state.set_form_error(message)
        return SubmissionResult(
            status=status,
            field_errors=self.state.errors,
            form_error=message,
            redirect=self._emit_redirect(),
        )

    async def submit(self) -> SubmissionResult:
        if self.is_submitting:
            raise SubmissionInProgress("A submission is already in progress")

        self.status = SubmissionStatus.VALIDATING
        self.state.set_form_error("")

        if not self.is_authenticated():
            logger.info("Submit blocked: not authenticated")
            return self._blocked_on_auth(SubmissionStatus.AUTH_REQUIRED, AUTH_REQUIRED_MESSAGE)

        descriptors = self.state.descriptors
        try:
            errors = validate(descriptors, self.state.values)
        except Exception as exc:
            return self._failed(exc)
        if errors:
            self.status = SubmissionStatus.VALIDATION_FAILED
            self.state.set_errors(errors)
            return SubmissionResult(
                status=self.status,
                field_errors=errors,
                focus_field=first_error_field(descriptors, errors),
            )

        self.state.set_errors({})
        self.status = SubmissionStatus.SUBMITTING
        try:
            response = await self.submit_handler(self.state.snapshot())
        except Exception as exc:
            return self._failed(exc)

        self.status = SubmissionStatus.SUCCEEDED
        return SubmissionResult(status=self.status, response=response)

    def _failed(self, exc: Exception) -> SubmissionResult:
        code = http_status(exc)
        if code in AUTH_FAILURE_STATUSES:
            logger.warning("Submit rejected with HTTP %s; session expired", code)
            return self._blocked_on_auth(SubmissionStatus.SESSION_EXPIRED, SESSION_EXPIRED_MESSAGE)

        logger.exception("Form submission failed")
        message = str(exc) or GENERIC_FAILURE_MESSAGE
        self.status = SubmissionStatus.FAILED
        self.state.set_form_error(message)
        return SubmissionResult(
            status=self.status,
            field_errors=self.state.errors,
            form_error=message,
        )
