import json
import logging
import os
from decimal import Decimal
from glob import glob

import boto3
from faker import Faker
from moto import mock_aws

from tests import TstLambdas

logger = logging.getLogger(__name__)
logging.basicConfig()
logger.setLevel(logging.DEBUG if os.environ.get('DEBUG', 'false') == 'true' else logging.INFO)


@mock_aws
class TstFunction(TstLambdas):
    """Base class to set up Moto mocking and create mock AWS resources for functional testing"""

    def setUp(self):  # noqa: N801 invalid-name
        super().setUp()

        self.faker = Faker(['en_US', 'fr_CA'])
        self.build_resources()

        self.addCleanup(self.delete_resources)

        import myh_common.config

        myh_common.config.config = myh_common.config._Config()  # noqa: SLF001 protected-access
        self.config = myh_common.config.config

    def build_resources(self):
        self.create_safety_data_table()

        # Adding a waiter allows for testing against an actual AWS account, if needed
        waiter = self._safety_data_table.meta.client.get_waiter('table_exists')
        waiter.wait(TableName=self._safety_data_table.name)

    def create_safety_data_table(self):
        self._safety_data_table = boto3.resource('dynamodb').create_table(
            AttributeDefinitions=[
                {'AttributeName': 'pk', 'AttributeType': 'S'},
                {'AttributeName': 'sk', 'AttributeType': 'S'},
                {'AttributeName': 'type', 'AttributeType': 'S'},
                {'AttributeName': 'jurisdictionCode', 'AttributeType': 'S'},
            ],
            TableName=os.environ['SAFETY_DATA_TABLE_NAME'],
            KeySchema=[{'AttributeName': 'pk', 'KeyType': 'HASH'}, {'AttributeName': 'sk', 'KeyType': 'RANGE'}],
            BillingMode='PAY_PER_REQUEST',
            GlobalSecondaryIndexes=[
                {
                    'IndexName': os.environ['RECORD_TYPE_INDEX_NAME'],
                    'KeySchema': [
                        {'AttributeName': 'type', 'KeyType': 'HASH'},
                        {'AttributeName': 'sk', 'KeyType': 'RANGE'},
                    ],
                    'Projection': {'ProjectionType': 'ALL'},
                },
                {
                    'IndexName': os.environ['JURISDICTION_INDEX_NAME'],
                    'KeySchema': [
                        {'AttributeName': 'jurisdictionCode', 'KeyType': 'HASH'},
                        {'AttributeName': 'pk', 'KeyType': 'RANGE'},
                    ],
                    'Projection': {'ProjectionType': 'ALL'},
                },
            ],
        )

    def delete_resources(self):
        self._safety_data_table.delete()

    def _load_safety_data(self):
        """Use the canned test resources to load a basic safety data set to the DB"""
        test_resources = glob('tests/resources/dynamo/*.json')

        for resource in test_resources:
            with open(resource) as f:
                record = json.load(f, parse_float=Decimal)

            logger.debug('Loading resource, %s: %s', resource, str(record))
            self._safety_data_table.put_item(Item=record)
