import json

from moto import mock_aws

from tests.function import TstFunction


@mock_aws
class TestGetLocationSafety(TstFunction):
    def setUp(self):
        super().setUp()
        self._load_safety_data()

    def _event(self, postal_code: str) -> dict:
        with open('tests/resources/api-event.json') as f:
            event = json.load(f)
        event['pathParameters'] = {'postalCode': postal_code}
        return event

    def test_get_location_safety(self):
        from handlers.locations import get_location_safety

        resp = get_location_safety(self._event('10001'), self.mock_context)
        self.assertEqual(200, resp['statusCode'])
        body = json.loads(resp['body'])

        self.assertEqual('US-NY', body['jurisdictionCode'])
        self.assertEqual('New York', body['city'])
        self.assertEqual(['lead', 'nitrate'], [measurement['contaminantId'] for measurement in body['measurements']])
        lead, nitrate = body['measurements']

        self.assertEqual(12, lead['value'])
        self.assertEqual('warning', lead['status'])
        self.assertEqual('parent', lead['thresholdTier'])
        self.assertEqual('US', lead['thresholdJurisdictionCode'])
        self.assertEqual(15, lead['threshold']['limitValue'])
        self.assertEqual(10, lead['whoThreshold']['limitValue'])
        self.assertEqual('worsening', lead['trend'])
        self.assertEqual(
            [
                {'value': 8, 'measuredAt': '2024-01-01T00:00:00+00:00', 'status': 'safe'},
                {'value': 9, 'measuredAt': '2024-03-01T00:00:00+00:00', 'status': 'safe'},
            ],
            lead['history'],
        )

        self.assertEqual('safe', nitrate['status'])
        self.assertEqual('exact', nitrate['thresholdTier'])
        self.assertIsNone(nitrate['whoThreshold'])

        self.assertEqual({'water': 'warning'}, body['categoryStatus'])
        self.assertEqual('warning', body['overallStatus'])
        self.assertFalse(body['isFallback'])

    def test_location_not_found(self):
        from handlers.locations import get_location_safety

        resp = get_location_safety(self._event('99999'), self.mock_context)

        self.assertEqual(404, resp['statusCode'])
        self.assertEqual({'message': 'Location not found'}, json.loads(resp['body']))

    def test_location_with_unknown_jurisdiction_is_derived_from_state(self):
        from handlers.locations import get_location_safety

        self._safety_data_table.put_item(
            Item={
                'pk': 'LOCATION#10003',
                'sk': 'LOCATION#10003',
                'type': 'location',
                'postalCode': '10003',
                'city': 'New York',
                'state': 'NY',
                'country': 'US',
                'jurisdictionCode': 'US-NYC',
                'dateOfUpdate': '2024-05-01',
            }
        )

        resp = get_location_safety(self._event('10003'), self.mock_context)
        self.assertEqual(200, resp['statusCode'])
        body = json.loads(resp['body'])

        self.assertEqual('US-NY', body['jurisdictionCode'])
        # No measurements at all is a safe location
        self.assertEqual([], body['measurements'])
        self.assertEqual('safe', body['overallStatus'])


@mock_aws
class TestQueryLocationsSafety(TstFunction):
    def setUp(self):
        super().setUp()
        self._load_safety_data()

    def _event(self, postal_codes: str | None) -> dict:
        with open('tests/resources/api-event.json') as f:
            event = json.load(f)
        event['resource'] = '/v1/locations/safety'
        event['requestContext']['resourcePath'] = '/v1/locations/safety'
        event['pathParameters'] = None
        event['queryStringParameters'] = {'postalCodes': postal_codes} if postal_codes is not None else None
        return event

    def test_query_locations_safety(self):
        from handlers.locations import query_locations_safety

        resp = query_locations_safety(self._event('10001, 10002,99999,10001'), self.mock_context)
        self.assertEqual(200, resp['statusCode'])
        body = json.loads(resp['body'])

        self.assertEqual(['10001', '10002'], body['postalCodes'])
        self.assertEqual(['99999'], body['missingPostalCodes'])
        self.assertEqual('US-NY', body['jurisdictionCode'])

        lead, nitrate = body['measurements']
        self.assertEqual(18, lead['value'])
        self.assertEqual('danger', lead['status'])
        self.assertEqual(['10001', '10002'], lead['postalCodes'])
        self.assertNotIn('history', lead)

        self.assertEqual(5, nitrate['value'])
        self.assertEqual('safe', nitrate['status'])
        self.assertEqual('danger', body['overallStatus'])

    def test_postal_codes_required(self):
        from handlers.locations import query_locations_safety

        for postal_codes in (None, '', ' , '):
            resp = query_locations_safety(self._event(postal_codes), self.mock_context)

            self.assertEqual(400, resp['statusCode'], postal_codes)
            self.assertEqual({'message': 'postalCodes is required'}, json.loads(resp['body']))

    def test_too_many_postal_codes(self):
        from handlers.locations import MAX_POSTAL_CODES, query_locations_safety

        postal_codes = ','.join(str(10000 + i) for i in range(MAX_POSTAL_CODES + 1))

        resp = query_locations_safety(self._event(postal_codes), self.mock_context)

        self.assertEqual(400, resp['statusCode'])

    def test_no_locations_found(self):
        from handlers.locations import query_locations_safety

        resp = query_locations_safety(self._event('99998,99999'), self.mock_context)

        self.assertEqual(404, resp['statusCode'])


@mock_aws
class TestGetCityObservations(TstFunction):
    def setUp(self):
        super().setUp()
        self._load_safety_data()

    def _event(self, country: str, state: str, city: str) -> dict:
        with open('tests/resources/api-event.json') as f:
            event = json.load(f)
        event['resource'] = '/v1/cities/{country}/{state}/{city}/observations'
        event['requestContext']['resourcePath'] = '/v1/cities/{country}/{state}/{city}/observations'
        event['pathParameters'] = {'country': country, 'state': state, 'city': city}
        return event

    def test_get_city_observations(self):
        from handlers.locations import get_city_observations

        resp = get_city_observations(self._event('us', 'ny', 'New%20York'), self.mock_context)
        self.assertEqual(200, resp['statusCode'])
        body = json.loads(resp['body'])

        self.assertEqual('US-NY', body['jurisdictionCode'])
        self.assertEqual('New York', body['city'])
        observations = {observation['propertyId']: observation for observation in body['observations']}

        self.assertEqual('danger', observations['aqi']['status'])
        self.assertEqual('default', observations['aqi']['thresholdTier'])
        self.assertEqual('WHO', observations['aqi']['thresholdJurisdictionCode'])

        self.assertEqual('warning', observations['lyme-disease']['status'])
        self.assertEqual('parent', observations['lyme-disease']['thresholdTier'])

        self.assertEqual('warning', observations['healthcare-access']['status'])
        self.assertEqual('numeric', observations['healthcare-access']['observationType'])

        self.assertEqual({'air': 'danger', 'health': 'warning'}, body['categoryStatus'])
        self.assertEqual('danger', body['overallStatus'])

    def test_city_without_observations(self):
        from handlers.locations import get_city_observations

        resp = get_city_observations(self._event('US', 'NY', 'Buffalo'), self.mock_context)
        body = json.loads(resp['body'])

        self.assertEqual([], body['observations'])
        self.assertEqual({}, body['categoryStatus'])
        self.assertEqual('safe', body['overallStatus'])
