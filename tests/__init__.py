import os
from unittest import TestCase
from unittest.mock import MagicMock

from aws_lambda_powertools.utilities.typing import LambdaContext


class TstLambdas(TestCase):
    @classmethod
    def setUpClass(cls):
        os.environ.update(
            {
                # Set to 'true' to enable debug logging
                'DEBUG': 'false',
                'AWS_DEFAULT_REGION': 'us-east-1',
                'SAFETY_DATA_TABLE_NAME': 'safety-data-table',
                'RECORD_TYPE_INDEX_NAME': 'recordType',
                'JURISDICTION_INDEX_NAME': 'jurisdictionCode',
                'DEFAULT_JURISDICTION_CODE': 'WHO',
                'ADMIN_GROUP_NAME': 'admin',
            }
        )
        os.environ.pop('FALLBACK_DATA_PATH', None)
        # Monkey-patch config object to be sure we have it based
        # on the env vars we set above
        import myh_common.config

        cls.config = myh_common.config._Config()  # noqa: SLF001 protected-access
        myh_common.config.config = cls.config
        cls.mock_context = MagicMock(name='MockLambdaContext', spec=LambdaContext)
