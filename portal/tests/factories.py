import factory
from factory import django
from faker import Faker
from django.core.files.uploadedfile import SimpleUploadedFile

from portal.models import SubmissionFile

fake = Faker()


class UserFactory(django.DjangoModelFactory):
    class Meta:
        model = "auth.User"
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"{fake.user_name()}{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@university.edu")
    first_name = factory.LazyFunction(fake.first_name)
    last_name = factory.LazyFunction(fake.last_name)

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        # set a usable password
        obj.set_password(extracted or "password")
        if create:
            obj.save()


class SubmissionFactory(django.DjangoModelFactory):
    class Meta:
        model = "portal.Submission"

    user = factory.SubFactory(UserFactory)
    form_key = "magazine-submission"
    data = factory.LazyFunction(lambda: {
        "title": fake.sentence(nb_words=4).rstrip("."),
        "description": fake.paragraph(),
        "file": {"original_name": "poem.pdf", "content_type": "application/pdf", "size_bytes": 2048},
        "academic_year": fake.random_element(elements=("2024-2025", "2025-2026")),
        "terms_accepted": True,
    })


class SubmissionFileFactory(django.DjangoModelFactory):
    class Meta:
        model = SubmissionFile

    submission = factory.SubFactory(SubmissionFactory)
    field_key = "file"

    # Use a small in-memory file
    file = factory.LazyFunction(
        lambda: SimpleUploadedFile("poem.pdf", b"%PDF-1.4 fake", content_type="application/pdf")
    )

    original_name = "poem.pdf"
    content_type = "application/pdf"
    size_bytes = 13
