# messaging/urls.py

from django.urls import path

from messaging.views import (
    ChannelListView,
    ChannelMessagesView,
    ChannelSendView,
    DirectConversationView,
    DirectSendView,
    MentionListView,
    MentionParseView,
    MentionReadView,
    MentionStatsView,
    MentionUserSearchView,
    MessageDetailView,
)

urlpatterns = [
    path("messages/channels/", ChannelListView.as_view(), name="message-channels"),
    path("messages/channels/send/", ChannelSendView.as_view(), name="message-channel-send"),
    path("messages/channels/<str:channel>/messages/", ChannelMessagesView.as_view(), name="message-channel-messages"),
    path("messages/direct/send/", DirectSendView.as_view(), name="message-direct-send"),
    path("messages/direct/<uuid:user_id>/", DirectConversationView.as_view(), name="message-direct"),
    path("messages/<int:pk>/", MessageDetailView.as_view(), name="message-detail"),
    path("mentions/", MentionListView.as_view(), name="mentions"),
    path("mentions/search-users/", MentionUserSearchView.as_view(), name="mentions-search-users"),
    path("mentions/parse/", MentionParseView.as_view(), name="mentions-parse"),
    path("mentions/stats/", MentionStatsView.as_view(), name="mentions-stats"),
    path("mentions/<int:pk>/read/", MentionReadView.as_view(), name="mentions-read"),
]
