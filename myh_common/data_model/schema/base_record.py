# ruff: noqa: N815 invalid-name
# We diverge from PEP8 variable naming in schema because they map to our API JSON Schema in which,
# by convention, we use camelCase.
from abc import ABC
from datetime import UTC, datetime

from marshmallow import RAISE, Schema, post_load, pre_dump
from marshmallow.fields import Date, String
from marshmallow.validate import Regexp

from myh_common.exceptions import MYHInternalException


class StrictSchema(Schema):
    """
    Base Schema explicitly stating what we do if unknown fields are included - raise an error
    """

    class Meta:
        unknown = RAISE


class JurisdictionCode(String):
    """
    Upper-case jurisdiction code, e.g. WHO, US, US-NY, CA-QC
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, validate=Regexp(r'^[A-Z0-9]+(-[A-Z0-9]+)*$'), **kwargs)


class BaseRecordSchema(StrictSchema, ABC):
    """
    Abstract base class, common to all records in the safety data table
    """

    _record_type = None
    _registered_schema = {}

    # Generated fields
    pk = String(required=True, allow_none=False)
    sk = String(required=True, allow_none=False)
    dateOfUpdate = Date(required=True, allow_none=False)

    # Provided fields
    type = String(required=True, allow_none=False)

    @post_load
    def drop_base_gen_fields(self, in_data, **kwargs):  # noqa: ARG002 unused-argument
        """
        Drop the db-specific pk and sk fields before returning loaded data
        """
        in_data.pop('pk', None)
        in_data.pop('sk', None)
        return in_data

    @pre_dump
    def populate_type(self, in_data, **kwargs):  # noqa: ARG002 unused-argument
        """
        Populate db-specific fields before dumping to the database
        """
        in_data['type'] = self._record_type
        return in_data

    @pre_dump
    def populate_date_of_update(self, in_data, **kwargs):  # noqa: ARG002 unused-argument
        """
        Populate db-specific fields before dumping to the database
        """
        # YYYY-MM-DD
        in_data['dateOfUpdate'] = datetime.now(tz=UTC).date()
        return in_data

    @classmethod
    def register_schema(cls, record_type: str):
        """
        Add the record type to the class map of schema, so we can look one up by type
        """

        def do_register(schema_cls: type[Schema]) -> type[Schema]:
            cls._registered_schema[record_type] = schema_cls()
            return schema_cls

        return do_register

    @classmethod
    def get_schema_by_type(cls, record_type: str) -> Schema:
        try:
            return cls._registered_schema[record_type]
        except KeyError as e:
            raise MYHInternalException(f'Unsupported record type, "{record_type}"') from e
