from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
from marshmallow import ValidationError

from myh_common.config import _Config, logger
from myh_common.data_model.query_paginator import paginated_query, query_all
from myh_common.data_model.schema import (
    ContaminantRecordSchema,
    JurisdictionRecordSchema,
    LocationRecordSchema,
)
from myh_common.data_model.schema.base_record import BaseRecordSchema
from myh_common.data_model.schema.common import (
    CONTAMINANT_THRESHOLD_TYPE,
    CONTAMINANT_TYPE,
    JURISDICTION_TYPE,
    OBSERVED_PROPERTY_TYPE,
    PROPERTY_THRESHOLD_TYPE,
)
from myh_common.data_model.schema.observation import city_partition_key
from myh_common.exceptions import MYHAwsServiceException, MYHInvalidRequestException, MYHNotFoundException


class DataClient:
    """Client interface for safety data dynamodb queries"""

    def __init__(self, config: _Config):
        self.config = config

    def _get_item(self, *, pk: str, sk: str, schema: BaseRecordSchema, not_found_message: str) -> dict:
        try:
            item = self.config.safety_data_table.get_item(Key={'pk': pk, 'sk': sk})['Item']
        except KeyError as e:
            logger.info(not_found_message, pk=pk, sk=sk)
            raise MYHNotFoundException(not_found_message) from e
        return schema.load(item)

    @paginated_query
    def get_records_by_type(self, *, record_type: str, dynamo_pagination: dict):
        logger.info('Getting records by type', record_type=record_type)
        return self.config.safety_data_table.query(
            IndexName=self.config.record_type_index_name,
            Select='ALL_ATTRIBUTES',
            KeyConditionExpression=Key('type').eq(record_type),
            **dynamo_pagination,
        )

    @paginated_query
    def get_partition(self, *, pk: str, sk_prefix: str, dynamo_pagination: dict, scan_forward: bool = True):
        logger.info('Getting partition', pk=pk, sk_prefix=sk_prefix)
        return self.config.safety_data_table.query(
            Select='ALL_ATTRIBUTES',
            KeyConditionExpression=Key('pk').eq(pk) & Key('sk').begins_with(sk_prefix),
            ScanIndexForward=scan_forward,
            **dynamo_pagination,
        )

    @paginated_query
    def get_thresholds_for_jurisdiction(self, *, jurisdiction_code: str, entity_prefix: str, dynamo_pagination: dict):
        """
        List the thresholds a single jurisdiction defines.

        Location records carry a jurisdictionCode too, so the index query is restricted to threshold partitions.

        :param jurisdiction_code: The jurisdiction to list thresholds for
        :param entity_prefix: 'CONTAMINANT' or 'PROPERTY'
        """
        logger.info('Getting thresholds for jurisdiction', jurisdiction_code=jurisdiction_code, entity=entity_prefix)
        return self.config.safety_data_table.query(
            IndexName=self.config.jurisdiction_index_name,
            Select='ALL_ATTRIBUTES',
            KeyConditionExpression=Key('jurisdictionCode').eq(jurisdiction_code)
            & Key('pk').begins_with(f'{entity_prefix}#'),
            **dynamo_pagination,
        )

    def get_jurisdictions(self) -> list[dict]:
        return query_all(self.get_records_by_type, record_type=JURISDICTION_TYPE)

    def get_jurisdiction(self, *, code: str) -> dict:
        return self._get_item(
            pk='JURISDICTION',
            sk=f'JURISDICTION#{code}',
            schema=JurisdictionRecordSchema(),
            not_found_message='Jurisdiction not found',
        )

    def get_contaminants(self) -> list[dict]:
        return query_all(self.get_records_by_type, record_type=CONTAMINANT_TYPE)

    def get_contaminant(self, *, contaminant_id: str) -> dict:
        return self._get_item(
            pk='CONTAMINANT',
            sk=f'CONTAMINANT#{contaminant_id}',
            schema=ContaminantRecordSchema(),
            not_found_message='Contaminant not found',
        )

    def get_contaminant_thresholds(self) -> list[dict]:
        return query_all(self.get_records_by_type, record_type=CONTAMINANT_THRESHOLD_TYPE)

    def get_contaminant_thresholds_for_contaminant(self, *, contaminant_id: str) -> list[dict]:
        return query_all(self.get_partition, pk=f'CONTAMINANT#{contaminant_id}', sk_prefix='THRESHOLD#')

    def get_observed_properties(self) -> list[dict]:
        return query_all(self.get_records_by_type, record_type=OBSERVED_PROPERTY_TYPE)

    def get_property_thresholds(self) -> list[dict]:
        return query_all(self.get_records_by_type, record_type=PROPERTY_THRESHOLD_TYPE)

    def get_location(self, *, postal_code: str) -> dict:
        return self._get_item(
            pk=f'LOCATION#{postal_code}',
            sk=f'LOCATION#{postal_code}',
            schema=LocationRecordSchema(),
            not_found_message='Location not found',
        )

    def get_location_measurements(self, *, postal_code: str) -> list[dict]:
        """All measurements for a postal code, oldest first within each contaminant"""
        return query_all(self.get_partition, pk=f'LOCATION#{postal_code}', sk_prefix='MEASUREMENT#')

    def get_location_observations(self, *, country: str, state: str, city: str) -> list[dict]:
        """All observations for a city, oldest first within each observed property"""
        return query_all(
            self.get_partition,
            pk=city_partition_key(country=country, state=state, city=city),
            sk_prefix='OBSERVATION#',
        )

    def put_record(self, *, record_type: str, record: dict) -> dict:
        """
        Validate and write a single record.

        Numeric fields should be provided as Decimal, which is what DynamoDB accepts.

        :param record_type: One of the registered record types
        :param record: The record's provided fields
        :return: The record, as written
        """
        schema = BaseRecordSchema.get_schema_by_type(record_type)
        item = schema.dump({**record})
        try:
            schema.load(item)
        except ValidationError as e:
            raise MYHInvalidRequestException(f'Invalid {record_type} record: {e.messages}') from e

        try:
            self.config.safety_data_table.put_item(Item=item)
        except ClientError as e:
            logger.error('Failed to write record', record_type=record_type, pk=item['pk'], exc_info=e)
            raise MYHAwsServiceException(f'Failed to write {record_type} record') from e
        logger.info('Wrote record', record_type=record_type, pk=item['pk'], sk=item['sk'])
        return item
