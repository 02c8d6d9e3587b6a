# notifications/urls.py

from django.urls import path

from notifications.views import (
    ConnectedUsersView,
    NotificationDetailView,
    NotificationListView,
    NotificationPreferenceView,
    NotificationReadAllView,
    NotificationReadView,
    NotificationStatsView,
    NotificationTestView,
)

urlpatterns = [
    path("", NotificationListView.as_view(), name="notifications"),
    path("read-all/", NotificationReadAllView.as_view(), name="notifications-read-all"),
    path("preferences/", NotificationPreferenceView.as_view(), name="notifications-preferences"),
    path("stats/", NotificationStatsView.as_view(), name="notifications-stats"),
    path("test/", NotificationTestView.as_view(), name="notifications-test"),
    path("connected-users/", ConnectedUsersView.as_view(), name="notifications-connected-users"),
    path("<int:pk>/read/", NotificationReadView.as_view(), name="notifications-read"),
    path("<int:pk>/", NotificationDetailView.as_view(), name="notifications-detail"),
]
