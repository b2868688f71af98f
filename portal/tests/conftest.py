from pathlib import Path

import pytest

from .factories import SubmissionFactory, UserFactory

FORMS_FIXTURES = Path(__file__).resolve().parent / "fixtures" / "forms"


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Keep uploaded files out of the repo."""
    settings.MEDIA_ROOT = str(tmp_path / "media")
    return settings.MEDIA_ROOT


@pytest.fixture
def fixture_forms(settings):
    """Point the form loader at portal/tests/fixtures/forms."""
    settings.PORTAL_FORMS_DIR = str(FORMS_FIXTURES)
    return FORMS_FIXTURES


@pytest.fixture
def user(db):
    """Create and return a user via factory."""
    return UserFactory.create()


@pytest.fixture
def submission(db, user):
    """Create and return a Submission via factory."""
    return SubmissionFactory.create(user=user)
