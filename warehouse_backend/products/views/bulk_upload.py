# products/views/bulk_upload.py

"""
BULK UPLOAD

POST /api/products/bulk-upload/            multipart `file` (CSV) or JSON `rows`, plus `warehouse`
GET  /api/products/bulk-upload/history/    previous uploads, newest first (?warehouse=)
"""

import os

from rest_framework import generics, status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import CAP_INVENTORY_EDIT, CAP_INVENTORY_VIEW, CapabilityViewMixin
from products.models import BulkUpload
from products.serializers import BulkUploadRequestSerializer, BulkUploadSerializer
from products.services.bulk_upload import BulkUploadError, parse_csv, process_bulk_upload
from warehouses.models import Warehouse
from warehouses.services import resolve_warehouse


class BulkUploadView(CapabilityViewMixin, APIView):
    default_capability = CAP_INVENTORY_EDIT
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def post(self, request):
        serializer = BulkUploadRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            warehouse = resolve_warehouse(data["warehouse"])
        except Warehouse.DoesNotExist as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        upload_file = data.get("file")
        try:
            if upload_file is not None:
                rows = parse_csv(upload_file.read())
                file_name = os.path.basename(upload_file.name or "upload.csv")
            else:
                rows = data["rows"]
                file_name = "rows.json"

            upload = process_bulk_upload(
                rows=rows,
                warehouse=warehouse,
                file_name=file_name,
                user=request.user,
            )
        except BulkUploadError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(BulkUploadSerializer(upload).data, status=status.HTTP_201_CREATED)


class BulkUploadHistoryView(CapabilityViewMixin, generics.ListAPIView):
    serializer_class = BulkUploadSerializer
    default_capability = CAP_INVENTORY_VIEW

    def get_queryset(self):
        qs = BulkUpload.objects.select_related("warehouse", "uploaded_by")
        warehouse = (self.request.query_params.get("warehouse") or "").strip()
        if warehouse:
            qs = qs.filter(warehouse__code__iexact=warehouse)
        return qs.order_by("-created_at", "-id")
