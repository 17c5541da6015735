import logging
import os
from functools import cached_property

import boto3
from aws_lambda_powertools.logging import Logger

logging.basicConfig()
logger = Logger()
logger.setLevel(logging.DEBUG if os.environ.get('DEBUG', 'false').lower() == 'true' else logging.INFO)


class _Config:
    default_page_size = 100
    default_warning_ratio = 0.8

    @cached_property
    def dynamodb_resource(self):
        return boto3.resource('dynamodb')

    @cached_property
    def safety_data_table(self):
        return self.dynamodb_resource.Table(self.safety_data_table_name)

    @cached_property
    def data_client(self):
        from myh_common.data_model.data_client import DataClient

        return DataClient(self)

    @cached_property
    def static_data_source(self):
        from myh_common.data_model.data_source import StaticDataSource

        if self.fallback_data_path is None:
            return None
        return StaticDataSource.from_json_file(self.fallback_data_path)

    @property
    def data_source(self):
        """
        The data source the handlers read from: the live table, backed by the static data set when one is configured.

        A new source is returned on each access, so fallback use is tracked per request.
        """
        from myh_common.data_model.data_source import DynamoDBDataSource, FallbackDataSource

        live = DynamoDBDataSource(self.data_client)
        if self.static_data_source is None:
            return live
        return FallbackDataSource(primary=live, fallback=self.static_data_source)

    @property
    def safety_data_table_name(self):
        return os.environ['SAFETY_DATA_TABLE_NAME']

    @property
    def record_type_index_name(self):
        return os.environ['RECORD_TYPE_INDEX_NAME']

    @property
    def jurisdiction_index_name(self):
        return os.environ['JURISDICTION_INDEX_NAME']

    @property
    def default_jurisdiction_code(self):
        return os.environ.get('DEFAULT_JURISDICTION_CODE', 'WHO')

    @property
    def admin_group_name(self):
        return os.environ.get('ADMIN_GROUP_NAME', 'admin')

    @property
    def fallback_data_path(self) -> str | None:
        return os.environ.get('FALLBACK_DATA_PATH') or None


config = _Config()
