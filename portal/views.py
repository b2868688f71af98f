import logging

from asgiref.sync import async_to_sync, sync_to_async
from django.contrib.auth.decorators import login_required
from django.db import transaction
from django.http import Http404
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse

from .models import Submission, SubmissionFile
from .services.config_loader import FormConfig, load_form_config
from .services.errors import FormConfigError, UnknownFieldError
from .services.fields import FieldKind
from .services.form_state import FormState
from .services.form_utils import answer_rows
from .services.rendering import bind_fields
from .services.submission import SubmissionOrchestrator, SubmissionStatus
from .services.validation import clean_values, first_error_field

logger = logging.getLogger(__name__)

RESET_ACTION = "reset"


# -----------------------------
# Helpers
# -----------------------------

def _load_config_or_404(form_key: str) -> FormConfig:
    config = load_form_config(form_key)
    if config is None:
        raise Http404("Form not found")
    return config


def _descriptors_or_404(config: FormConfig):
    try:
        return config.fields
    except FormConfigError:
        logger.exception("Form %s has a broken definition", config.form_key)
        raise Http404("Form not available")


def _initial_values(config: FormConfig, request) -> dict:
    # YAML `initial:` block, then ?field=value from the query string
    initial = dict(config.raw.get("initial") or {})
    for key, value in request.GET.items():
        initial.setdefault(key, value)
    return initial


def _apply_post(state: FormState, request) -> None:
    """Replay the POSTed fields through the state machine, in descriptor order."""
    for field in state.descriptors:
        if field.kind is FieldKind.FILE:
            uploaded = request.FILES.get(field.name)
            if uploaded:
                state.set_file(field.name, uploaded)
            continue
        state.set_value(field.name, request.POST.get(field.name))


def _save_uploaded_files(submission: Submission, state: FormState, values: dict) -> None:
    for field in state.descriptors:
        if field.kind is not FieldKind.FILE:
            continue
        uploaded = values.get(field.name)
        if uploaded:
            SubmissionFile.objects.create(
                submission=submission,
                field_key=field.name,
                file=uploaded,
                original_name=getattr(uploaded, "name", "") or "",
                content_type=getattr(uploaded, "content_type", "") or "",
                size_bytes=getattr(uploaded, "size", 0) or 0,
            )


def _make_submit_handler(request, config: FormConfig, state: FormState):
    user = request.user if request.user.is_authenticated else None

    @sync_to_async
    def persist(values: dict) -> Submission:
        with transaction.atomic():
            submission = Submission.objects.create(
                user=user,
                form_key=config.form_key,
                data=clean_values(state.descriptors, values),
            )
            _save_uploaded_files(submission, state, values)
        return submission

    return persist


def _render_form(request, config: FormConfig, state: FormState, *, focus_field=None, redirect_to=None, status=200):
    is_authenticated = request.user.is_authenticated
    return render(
        request,
        "portal/submit_form.html",
        {
            "config": config,
            "form_key": config.form_key,
            "fields": bind_fields(state, focus_field=focus_field),
            "form_error": state.form_error,
            "errors": state.errors,
            "values": state.values,
            "can_reset": bool(state.descriptors) and state.has_values(),
            "is_authenticated": is_authenticated,
            "redirect": redirect_to,
        },
        status=status,
    )


# -----------------------------
# Views
# -----------------------------

def submit_view(request, form_key: str):
    config = _load_config_or_404(form_key)
    descriptors = _descriptors_or_404(config)
    state = FormState(descriptors, _initial_values(config, request))

    if request.method != "POST":
        return _render_form(request, config, state)

    if request.POST.get("_action") == RESET_ACTION:
        state.reset()
        return _render_form(request, config, state)

    _apply_post(state, request)

    clear_name = request.POST.get("_clear_file")
    if clear_name:
        try:
            state.clear_file(clear_name)
        except UnknownFieldError:
            logger.warning("Ignoring clear for unknown field %r on %s", clear_name, form_key)
        return _render_form(request, config, state)

    # Files rejected on selection (hard size cap) block the submit outright.
    if state.errors:
        return _render_form(request, config, state, focus_field=first_error_field(descriptors, state.errors))

    # request.user is resolved by _make_submit_handler below, before the event loop starts.
    user = request.user
    redirects = []
    orchestrator = SubmissionOrchestrator(
        state,
        is_authenticated=lambda: user.is_authenticated,
        submit_handler=_make_submit_handler(request, config, state),
        on_redirect=redirects.append,
    )
    result = async_to_sync(orchestrator.submit)()

    if result.ok:
        submission = result.response
        logger.info("Submission %s created via %s", submission.public_id, form_key)
        return redirect(
            reverse("submit_success", kwargs={"form_key": form_key, "public_id": submission.public_id})
        )

    if result.status in (SubmissionStatus.AUTH_REQUIRED, SubmissionStatus.SESSION_EXPIRED):
        return _render_form(request, config, state, redirect_to=redirects[0], status=403)

    return _render_form(request, config, state, focus_field=result.focus_field)


@login_required
def submit_success_view(request, form_key: str, public_id: str):
    config = _load_config_or_404(form_key)
    submission = get_object_or_404(Submission, form_key=form_key, public_id=public_id, user=request.user)

    try:
        descriptors = config.fields
    except FormConfigError:
        logger.warning("Form %s has a broken definition; showing raw keys", form_key)
        descriptors = []
    summary = answer_rows(descriptors, submission.data or {})

    return render(
        request,
        "portal/submit_success.html",
        {
            "config": config,
            "form_key": form_key,
            "submission": submission,
            "success_title": config.success["title"],
            "success_message": config.success["message"],
            "summary": summary,
        },
    )
