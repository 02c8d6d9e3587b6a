# damages/urls.py

from django.urls import path

from damages.views import DamageLogView, DamageSummaryView, DamageView, RecoverView

urlpatterns = [
    path("damage/", DamageView.as_view(), name="damage-report"),
    path("recover/", RecoverView.as_view(), name="damage-recover"),
    path("log/", DamageLogView.as_view(), name="damage-log"),
    path("summary/", DamageSummaryView.as_view(), name="damage-summary"),
]
