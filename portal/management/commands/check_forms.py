from django.core.management.base import BaseCommand, CommandError

import yaml

from portal.services.config_loader import list_form_keys, load_form_config
from portal.services.errors import FormConfigError


class Command(BaseCommand):
    help = "Load every YAML form under configs/forms and report definitions that can't be built."

    def add_arguments(self, parser):
        parser.add_argument("form_keys", nargs="*", help="Only check these forms (default: all).")

    def handle(self, *args, **options):
        form_keys = options["form_keys"] or list_form_keys()
        if not form_keys:
            self.stdout.write("No forms found; nothing to check.")
            return

        failures = 0
        for form_key in form_keys:
            try:
                config = load_form_config(form_key)
                if config is None:
                    raise FormConfigError("file not found")
                fields = config.fields
            except (FormConfigError, yaml.YAMLError) as exc:
                failures += 1
                self.stderr.write(f"{form_key}: {exc}")
                continue

            self.stdout.write(f"{form_key}: OK ({len(fields)} fields)")

        if failures:
            raise CommandError(f"{failures} form(s) failed to load")
