# people/urls.py
"""
URL configuration for the directory API.

Endpoints:
- /students/, /mentors/, /professors/ - people CRUD
- /students/<id>/packs/ - packs bought by a student
- /packs/ - pack catalogue
"""

from django.urls import path

from .views import (
    PersonListCreateView,
    PersonDetailView,
    PackListCreateView,
    StudentPackListCreateView,
)

app_name = "people"

urlpatterns = [
    path("students/", PersonListCreateView.as_view(kind="student"), name="student-list"),
    path("students/<int:pk>/", PersonDetailView.as_view(kind="student"), name="student-detail"),
    path("students/<int:pk>/packs/", StudentPackListCreateView.as_view(), name="student-packs"),
    path("mentors/", PersonListCreateView.as_view(kind="mentor"), name="mentor-list"),
    path("mentors/<int:pk>/", PersonDetailView.as_view(kind="mentor"), name="mentor-detail"),
    path("professors/", PersonListCreateView.as_view(kind="professor"), name="professor-list"),
    path("professors/<int:pk>/", PersonDetailView.as_view(kind="professor"), name="professor-detail"),
    path("packs/", PackListCreateView.as_view(), name="pack-list"),
]
