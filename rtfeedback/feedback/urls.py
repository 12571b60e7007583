from django.urls import path

from .views import generate_feedback_view

app_name = "feedback"
urlpatterns = [
    path("api/generate-feedback/", view=generate_feedback_view, name="generate"),
]
