"""URL routes for the catalog app."""

from django.urls import path

from .views import (
    HolderDetailView,
    HolderListCreateView,
    HolderMemberDetailView,
    HolderMembersView,
    HolderPrimaryView,
    ItemDetailView,
    ItemImageUploadView,
    ItemListCreateView,
    SlocDetailView,
    SlocListCreateView,
)

app_name = "catalog"

urlpatterns = [
    path("items/", ItemListCreateView.as_view(), name="item-list"),
    path("items/upload/", ItemImageUploadView.as_view(), name="item-upload"),
    path("items/<int:item_id>/", ItemDetailView.as_view(), name="item-detail"),
    path("slocs/", SlocListCreateView.as_view(), name="sloc-list"),
    path("slocs/<str:sloc_id>/", SlocDetailView.as_view(), name="sloc-detail"),
    path("ihs/", HolderListCreateView.as_view(), name="ih-list"),
    path("ihs/<str:ih_id>/", HolderDetailView.as_view(), name="ih-detail"),
    path("ihs/<str:ih_id>/members/", HolderMembersView.as_view(), name="ih-members"),
    path("ihs/<str:ih_id>/members/<int:user_id>/", HolderMemberDetailView.as_view(), name="ih-member-detail"),
    path("ihs/<str:ih_id>/members/<int:user_id>/primary/", HolderPrimaryView.as_view(), name="ih-member-primary"),
]
