import base64
import os
import secrets
import uuid

from django.conf import settings
from django.db import models


def generate_public_id() -> str:
    """Short, URL-safe identifier for sharing with contributors.

    10 random bytes -> 14 chars base64url (no padding). ~80 bits entropy.
    """

    return base64.urlsafe_b64encode(secrets.token_bytes(10)).decode("ascii").rstrip("=")


class Submission(models.Model):
    """
    One contributor submission through a YAML-configured form.
    The payload is dynamic and matches the form's field names.
    """

    STATUS_NEW = "New"
    STATUS_UNDER_REVIEW = "Under Review"
    STATUS_SELECTED = "Selected"
    STATUS_REJECTED = "Rejected"

    STATUS_CHOICES = [
        (STATUS_NEW, "New"),
        (STATUS_UNDER_REVIEW, "Under Review"),
        (STATUS_SELECTED, "Selected"),
        (STATUS_REJECTED, "Rejected"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="portal_submissions",
    )

    # Public-facing identifier (safe to share; does not reveal sequential DB ids)
    public_id = models.CharField(
        verbose_name="Submission ID",
        max_length=16,
        unique=True,
        db_index=True,
        editable=False,
        blank=True,
        default=generate_public_id,
    )

    form_key = models.CharField(max_length=64, default="magazine-submission", db_index=True)

    data = models.JSONField(default=dict)

    status = models.CharField(max_length=40, choices=STATUS_CHOICES, default=STATUS_NEW, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return f"{self.form_key} submission #{self.id}"

    def title(self) -> str:
        data = self.data or {}
        return str(data.get("title") or "").strip()

    def contributor_display_name(self) -> str:
        if not self.user_id:
            return ""
        full_name = self.user.get_full_name()
        return full_name or self.user.get_username()


def submission_upload_path(instance, filename: str) -> str:
    """
    Keep uploads organized by form + submission id.
    Example: uploads/magazine-submission/12345/<uuid>__poem.pdf
    """
    safe_name = os.path.basename(filename or "upload")
    return f"uploads/{instance.submission.form_key}/{instance.submission_id}/{uuid.uuid4().hex}__{safe_name}"


class SubmissionFile(models.Model):
    submission = models.ForeignKey(
        "Submission",
        on_delete=models.CASCADE,
        related_name="files",
    )

    # Matches the form field name (ex: "file")
    field_key = models.CharField(max_length=120)

    file = models.FileField(upload_to=submission_upload_path)

    original_name = models.CharField(max_length=255, blank=True, default="")
    content_type = models.CharField(max_length=120, blank=True, default="")
    size_bytes = models.BigIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.submission.form_key} #{self.submission_id} {self.field_key}"
