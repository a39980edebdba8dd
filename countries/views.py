import logging
import os

from django.http import FileResponse
from rest_framework import serializers, status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from . import utils
from .errors import PersistenceFailed, SourceUnavailable, ValidationFailed
from .refresh import get_refresher
from .serializers import CountrySerializer

logger = logging.getLogger(__name__)


def _internal_error():
    return Response({"error": "Internal server error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['POST'])
def refresh_countries(request):
    """
    POST /refresh
    Fetch countries and exchange rates, then update or create cached data.
    """
    try:
        result = get_refresher().refresh()
    except SourceUnavailable as exc:
        return Response(
            {"error": "External data source unavailable", "details": exc.details},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    except ValidationFailed as exc:
        return Response(
            {
                "error": "Validation failed",
                "details": exc.details,
                "record": {"index": exc.index, "name": exc.record_name},
            },
            status=status.HTTP_400_BAD_REQUEST,
        )
    except PersistenceFailed:
        return Response(
            {"error": "Internal server error", "details": "Refresh was rolled back"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    except Exception:
        logger.exception("Refresh failed unexpectedly")
        return _internal_error()

    return Response(
        {
            "success": True,
            "message": "Countries refreshed",
            "last_refreshed_at": serializers.DateTimeField().to_representation(result.last_refreshed_at),
            "total_countries": result.total_countries,
            "processed": result.processed,
        },
        status=status.HTTP_200_OK,
    )


@api_view(['GET'])
def list_countries(request):
    """
    GET /records
    Filters:
      - ?region=Africa
      - ?currency=NGN
    Sorting:
      - ?sort=gdp_desc or ?sort=gdp_asc
    Default:
      - Ordered by name, case-insensitive.
    """
    try:
        qs = get_refresher().store.filter(
            region=request.GET.get("region"),
            currency=request.GET.get("currency"),
            sort=request.GET.get("sort"),
        )
        serializer = CountrySerializer(qs, many=True)
        return Response(serializer.data)
    except Exception:
        logger.exception("Listing countries failed")
        return _internal_error()


@api_view(['GET', 'DELETE'])
def country_detail(request, name):
    """
    GET /records/:name  -> single country, matched case-insensitively, or 404
    DELETE /records/:name -> delete, return 200 or 404
    """
    store = get_refresher().store
    try:
        if request.method == 'GET':
            country = store.find_by_name(name)
            if country is None:
                return Response({"error": "Country not found"}, status=status.HTTP_404_NOT_FOUND)
            return Response(CountrySerializer(country).data)

        if not store.delete(name):
            return Response({"error": "Country not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response({"success": True})
    except Exception:
        logger.exception("Country lookup for %r failed", name)
        return _internal_error()


@api_view(['GET'])
def get_status(request):
    """
    GET /status -> { total_countries, last_refreshed_at }
    last_refreshed_at is taken as the max(last_refreshed_at) across records (or null)
    """
    store = get_refresher().store
    try:
        last = store.last_refreshed_at()
        return Response({
            "total_countries": store.count(),
            "last_refreshed_at": serializers.DateTimeField().to_representation(last) if last else None,
        })
    except Exception:
        logger.exception("Status query failed")
        return _internal_error()


@api_view(['GET'])
def get_summary_image(request):
    """
    GET /artifact
    Serve the summary image from the cache directory.
    """
    path = utils.get_summary_image_path()
    if not os.path.exists(path):
        return Response({"error": "Summary image not found"}, status=status.HTTP_404_NOT_FOUND)
    return FileResponse(open(path, 'rb'), content_type='image/png')
