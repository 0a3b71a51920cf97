"""URL routes for the users app."""

from django.urls import path

from .views import UserDetailView, UserListCreateView, current_user

app_name = "users"

urlpatterns = [
    path("me/", current_user, name="me"),
    path("", UserListCreateView.as_view(), name="user-list"),
    path("<int:user_id>/", UserDetailView.as_view(), name="user-detail"),
]
