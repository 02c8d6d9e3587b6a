# reports/urls.py

from django.urls import path

from reports.views import (
    ActivityView,
    DashboardView,
    DispatchHeatmapView,
    GlobalSearchView,
    WarehouseVolumeView,
)

# Mounted at /api/reports/.
urlpatterns = [
    path("dashboard/", DashboardView.as_view(), name="reports-dashboard"),
    path("warehouse-volume/", WarehouseVolumeView.as_view(), name="reports-warehouse-volume"),
    path("activity/", ActivityView.as_view(), name="reports-activity"),
    path("dispatch-heatmap/", DispatchHeatmapView.as_view(), name="reports-dispatch-heatmap"),
    path("search/", GlobalSearchView.as_view(), name="reports-search"),
]
