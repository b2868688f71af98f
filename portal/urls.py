from django.urls import path
from django.views.generic import RedirectView

from . import views


urlpatterns = [
    path("forms/<slug:form_key>/", views.submit_view, name="submit_form"),
    path(
        "forms/<slug:form_key>/submitted/<str:public_id>/",
        views.submit_success_view,
        name="submit_success",
    ),

    # The portal's one public form
    path(
        "submit/",
        RedirectView.as_view(url="/forms/magazine-submission/", permanent=False),
        name="submit",
    ),
]
