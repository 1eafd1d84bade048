import logging

from django.db import IntegrityError
from django.http import FileResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import CountryNotFound, NotFound, RefreshFailed, UpstreamUnavailable
from .serializers import (
    CacheStatusSerializer,
    CountryCreateSerializer,
    CountryListSerializer,
    CountrySerializer,
    RefreshResultSerializer,
)
from .services import get_country_store, get_refresh_orchestrator, get_summary_renderer

logger = logging.getLogger(__name__)


# -----------------------------------------------------------
# GET /countries → list countries (?region=, ?currency=, ?sort=gdp_desc)
# POST /countries → create one country
# -----------------------------------------------------------
class CountryListView(APIView):
    def get(self, request):
        params = request.query_params
        countries = get_country_store().list(
            region=params.get('region'),
            currency_code=params.get('currency') or params.get('currency_code'),
            sort=params.get('sort'),
        )
        return Response(CountryListSerializer(countries, many=True).data)

    def post(self, request):
        serializer = CountryCreateSerializer(data=request.data)
        if not serializer.is_valid():
            errors = serializer.errors
            return Response(
                {"error": "Validation failed", "details": errors.get("details", errors)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            country = get_country_store().create(serializer.validated_data)
        except IntegrityError:
            # lost a race with another create of the same name
            return Response(
                {"error": "Validation failed", "details": {"name": "already exists"}},
                status=status.HTTP_400_BAD_REQUEST,
            )
        logger.info("Created country %s", country.name)
        return Response(CountrySerializer(country).data, status=status.HTTP_201_CREATED)


# -----------------------------------------------------------
# GET /countries/:name → retrieve a country by name
# DELETE /countries/:name → delete a country
# -----------------------------------------------------------
class CountryDetailView(APIView):
    def get(self, request, name):
        try:
            country = get_country_store().get_by_name(name)
        except NotFound as e:
            return Response({"error": str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(CountrySerializer(country).data)

    def delete(self, request, name):
        if not get_country_store().delete_by_name(name):
            return Response({"error": CountryNotFound.message}, status=status.HTTP_404_NOT_FOUND)
        return Response({"message": "Country deleted successfully"}, status=status.HTTP_200_OK)


# -----------------------------------------------------------
# POST /countries/refresh → refresh all data
# -----------------------------------------------------------
class CountryRefreshView(APIView):
    def post(self, request):
        try:
            result = get_refresh_orchestrator().refresh()
        except UpstreamUnavailable as e:
            return Response(
                {"error": "External data source unavailable", "details": f"Could not fetch data from {e.source}"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        except RefreshFailed:
            return Response(
                {"error": "External data source unavailable", "details": "Failed during refresh"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response(RefreshResultSerializer(result._asdict()).data, status=status.HTTP_200_OK)


# -----------------------------------------------------------
# GET /status → total countries and last refresh time
# -----------------------------------------------------------
class StatusView(APIView):
    def get(self, request):
        store_status = get_country_store().status()
        return Response(CacheStatusSerializer(store_status._asdict()).data, status=status.HTTP_200_OK)


# -----------------------------------------------------------
# GET /countries/image → serve summary image
# -----------------------------------------------------------
class CountryImageView(APIView):
    def get(self, request):
        try:
            image_path = get_summary_renderer().artifact_path()
        except NotFound as e:
            return Response({"error": str(e)}, status=status.HTTP_404_NOT_FOUND)
        return FileResponse(open(image_path, 'rb'), content_type='image/png')
