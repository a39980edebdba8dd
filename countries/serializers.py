import logging

from rest_framework import serializers

from .errors import ValidationFailed
from .models import Country

logger = logging.getLogger(__name__)


class CountrySerializer(serializers.ModelSerializer):
    class Meta:
        model = Country
        fields = [
            'id', 'name', 'capital', 'region', 'population',
            'currency_code', 'exchange_rate', 'estimated_gdp',
            'flag_url', 'last_refreshed_at'
        ]
        read_only_fields = fields


class CatalogEntrySerializer(serializers.Serializer):
    """
    Required-field check for one record of the external country catalog.

    Only presence is checked here: a present but unparseable population is
    coerced later, and descriptive fields may be missing.
    """
    name = serializers.JSONField(required=False, allow_null=True)
    population = serializers.JSONField(required=False, allow_null=True)

    def validate(self, data):
        errors = {}
        name = data.get("name")
        if name is None or name == "":
            errors["name"] = "is required"
        elif not isinstance(name, str):
            errors["name"] = "must be a string"
        if data.get("population") is None:
            errors["population"] = "is required"
        if errors:
            raise serializers.ValidationError(errors)
        return data


def _flatten(errors):
    details = {}
    for field, messages in errors.items():
        if isinstance(messages, (list, tuple)):
            messages = messages[0] if messages else "is invalid"
        details[field] = str(messages)
    return details


def validate_catalog(catalog):
    """
    Reject the whole catalog when any record misses ``name`` or ``population``.

    Raises ValidationFailed for the first violating record; returns None
    when every record is acceptable.
    """
    for index, record in enumerate(catalog):
        serializer = CatalogEntrySerializer(data=record)
        if serializer.is_valid():
            continue
        record_name = record.get("name") if isinstance(record, dict) else None
        details = _flatten(serializer.errors)
        logger.warning("Catalog record %s (%r) rejected: %s", index, record_name, details)
        raise ValidationFailed(details, index=index, record_name=record_name)
