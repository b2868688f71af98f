from __future__ import annotations

import csv
import json
import logging

from django import forms
from django.contrib import admin
from django.http import HttpResponse
from django.utils import timezone
from django.utils.formats import date_format
from django.utils.html import format_html, format_html_join

from portal.models import Submission, SubmissionFile
from portal.services.config_loader import load_form_config
from portal.services.errors import FormConfigError
from portal.services.form_utils import answer_rows

logger = logging.getLogger(__name__)


def _bytes_to_mb(size: int) -> str:
    try:
        b = int(size or 0)
    except (TypeError, ValueError):
        b = 0

    if b <= 0:
        return ""

    kb = b / 1024
    if kb < 1024:
        return f"{kb:.0f} KB"

    mb = kb / 1024
    if mb < 1024:
        return f"{mb:.1f} MB"

    return f"{mb / 1024:.1f} GB"


def _descriptors_for(form_key: str) -> list:
    """Field descriptors of a form, or [] when the config is missing or broken."""
    config = load_form_config(form_key)
    if config is None:
        return []
    try:
        return config.fields
    except FormConfigError:
        logger.warning("Form %s has a broken definition; showing raw keys", form_key)
        return []


class PrettyJSONWidget(forms.Textarea):
    def format_value(self, value):
        if value in (None, "", {}):
            return ""
        try:
            if isinstance(value, str):
                value = json.loads(value)
            return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False)
        except (TypeError, ValueError):
            return super().format_value(value)


class SubmissionAdminForm(forms.ModelForm):
    class Meta:
        model = Submission
        fields = "__all__"
        widgets = {
            "data": PrettyJSONWidget(attrs={"rows": 18, "style": "font-family: monospace; white-space: pre;"}),
        }


class SubmissionFileInline(admin.TabularInline):
    model = SubmissionFile
    extra = 0
    fields = ("field_key", "file", "original_name", "content_type", "size_pretty", "created_at")
    readonly_fields = ("size_pretty", "created_at")

    def size_pretty(self, obj: SubmissionFile) -> str:
        return _bytes_to_mb(obj.size_bytes)

    size_pretty.short_description = "Size"


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    form = SubmissionAdminForm
    inlines = [SubmissionFileInline]
    actions = ["export_csv"]

    list_display = ("public_id", "submission_title", "contributor", "form_key", "status", "created_at_pretty")
    list_filter = ("status", "form_key")
    search_fields = ("public_id", "user__username", "user__email", "data__title")
    readonly_fields = ("public_id", "created_at_pretty", "answers")
    fieldsets = (
        ("General", {"fields": ("public_id", "user", "form_key", "status", "created_at_pretty")}),
        ("Answers", {"fields": ("answers",)}),
        ("Raw Data (advanced)", {"fields": ("data",), "classes": ("collapse",)}),
    )

    def created_at_pretty(self, obj: Submission) -> str:
        if not obj.created_at:
            return ""
        dt = timezone.localtime(obj.created_at)
        return date_format(dt, "N j, Y, P")

    created_at_pretty.short_description = "Created at"
    created_at_pretty.admin_order_field = "created_at"

    def submission_title(self, obj: Submission) -> str:
        return obj.title()

    submission_title.short_description = "Title"

    def contributor(self, obj: Submission) -> str:
        return obj.contributor_display_name()

    contributor.short_description = "Contributor"

    def answers(self, obj: Submission):
        data = (obj.data if obj else None) or {}
        if not data:
            return "—"

        rows = answer_rows(_descriptors_for(obj.form_key), data)
        return format_html(
            "<table>{}</table>",
            format_html_join("", "<tr><th>{}</th><td>{}</td></tr>", rows),
        )

    answers.short_description = "Answers"

    def export_csv(self, request, queryset):
        rows = list(queryset.order_by("-created_at")[:5000])
        all_keys = set()
        for s in rows:
            all_keys.update((s.data or {}).keys())

        response = HttpResponse(content_type="text/csv")
        response["Content-Disposition"] = 'attachment; filename="submissions.csv"'

        writer = csv.writer(response)
        writer.writerow(["submission_id", "created_at", "status", "contributor"] + sorted(all_keys))

        for s in rows:
            data = s.data or {}
            writer.writerow(
                [s.public_id, s.created_at.isoformat(), s.status, s.contributor_display_name()]
                + [data.get(k, "") for k in sorted(all_keys)]
            )

        return response

    export_csv.short_description = "Export selected submissions to CSV"
