import json
from datetime import UTC, datetime
from decimal import Decimal

from marshmallow import ValidationError

from tests import TstLambdas


class TestRecordSchemas(TstLambdas):
    def _load_resource(self, name: str) -> dict:
        with open(f'tests/resources/dynamo/{name}.json') as f:
            return json.load(f, parse_float=Decimal)

    def test_load_drops_keys(self):
        from myh_common.data_model.schema import ContaminantThresholdRecordSchema

        record = ContaminantThresholdRecordSchema().load(self._load_resource('contaminant-threshold-lead-us'))

        self.assertNotIn('pk', record)
        self.assertNotIn('sk', record)
        self.assertEqual('lead', record['contaminantId'])
        self.assertEqual(Decimal('15'), record['limitValue'])

    def test_dump_generates_keys(self):
        from myh_common.data_model.schema import ContaminantThresholdRecordSchema

        record = ContaminantThresholdRecordSchema().dump(
            {
                'contaminantId': 'arsenic',
                'jurisdictionCode': 'CA-QC',
                'limitValue': Decimal('10'),
                'status': 'regulated',
            }
        )

        self.assertEqual('CONTAMINANT#arsenic', record['pk'])
        self.assertEqual('THRESHOLD#CA-QC', record['sk'])
        self.assertEqual('contaminantThreshold', record['type'])
        self.assertIn('dateOfUpdate', record)

    def test_measurement_sort_key_includes_timestamp(self):
        from myh_common.data_model.schema import LocationMeasurementRecordSchema

        record = LocationMeasurementRecordSchema().dump(
            {
                'postalCode': '10001',
                'contaminantId': 'lead',
                'value': Decimal('4.2'),
                'measuredAt': datetime(2024, 6, 1, tzinfo=UTC),
            }
        )

        self.assertEqual('LOCATION#10001', record['pk'])
        self.assertEqual('MEASUREMENT#lead#2024-06-01T00:00:00+00:00', record['sk'])

    def test_observation_partition_is_normalized(self):
        from myh_common.data_model.schema import LocationObservationRecordSchema

        record = LocationObservationRecordSchema().dump(
            {
                'propertyId': 'aqi',
                'city': 'New York',
                'state': 'ny',
                'country': 'us',
                'zoneValue': 'Good',
                'observedAt': datetime(2024, 6, 1, tzinfo=UTC),
            }
        )

        self.assertEqual('CITY#US#NY#new york', record['pk'])
        self.assertEqual('OBSERVATION#aqi#2024-06-01T00:00:00+00:00', record['sk'])

    def test_every_resource_loads_through_its_registered_schema(self):
        from glob import glob

        from myh_common.utils import load_records_into_schemas

        records = []
        for resource in glob('tests/resources/dynamo/*.json'):
            with open(resource) as f:
                records.append(json.load(f, parse_float=Decimal))

        loaded = load_records_into_schemas(records)

        self.assertEqual(len(records), len(loaded))

    def test_invalid_jurisdiction_code(self):
        from myh_common.data_model.schema import JurisdictionRecordSchema

        record = self._load_resource('jurisdiction-us-ny')
        record['code'] = 'us-ny'

        with self.assertRaises(ValidationError) as context:
            JurisdictionRecordSchema().load(record)
        self.assertIn('code', context.exception.messages)

    def test_invalid_threshold_status(self):
        from myh_common.data_model.schema import ContaminantThresholdRecordSchema

        record = self._load_resource('contaminant-threshold-lead-us')
        record['status'] = 'historical'

        with self.assertRaises(ValidationError):
            ContaminantThresholdRecordSchema().load(record)

    def test_zero_warning_ratio_is_accepted(self):
        from myh_common.data_model.schema import ContaminantThresholdRecordSchema

        record = self._load_resource('contaminant-threshold-lead-us')
        record['warningRatio'] = Decimal('0')

        loaded = ContaminantThresholdRecordSchema().load(record)
        self.assertEqual(Decimal('0'), loaded['warningRatio'])

        record['warningRatio'] = Decimal('-0.1')
        with self.assertRaises(ValidationError):
            ContaminantThresholdRecordSchema().load(record)

    def test_zone_mapping_values_must_be_statuses(self):
        from myh_common.data_model.schema import PropertyThresholdRecordSchema

        record = self._load_resource('property-threshold-aqi-who')
        record['zoneMapping']['Hazardous'] = 'catastrophic'

        with self.assertRaises(ValidationError):
            PropertyThresholdRecordSchema().load(record)

    def test_observation_allows_only_one_value(self):
        from myh_common.data_model.schema import LocationObservationRecordSchema

        record = self._load_resource('observation-new-york-aqi')
        record['numericValue'] = Decimal('151')

        with self.assertRaises(ValidationError):
            LocationObservationRecordSchema().load(record)

    def test_unknown_record_type(self):
        from myh_common.data_model.schema.base_record import BaseRecordSchema
        from myh_common.exceptions import MYHInternalException

        with self.assertRaises(MYHInternalException):
            BaseRecordSchema.get_schema_by_type('provider')


class TestRecordDataclasses(TstLambdas):
    def test_threshold_numbers_become_floats(self):
        from myh_common.data_model.schema import ContaminantThreshold

        threshold = ContaminantThreshold.from_record(
            {
                'contaminantId': 'lead',
                'jurisdictionCode': 'US',
                'limitValue': Decimal('15'),
                'warningRatio': Decimal('0.8'),
                'status': 'regulated',
            }
        )

        self.assertEqual(('lead', 'US'), threshold.key)
        self.assertIsInstance(threshold.limit_value, float)
        self.assertEqual(0.8, threshold.warning_ratio)

    def test_jurisdiction_blank_parent_is_no_parent(self):
        from myh_common.data_model.schema import Jurisdiction

        jurisdiction = Jurisdiction.from_record({'code': 'US', 'parentCode': '', 'isDefault': False})

        self.assertIsNone(jurisdiction.parent_code)

    def test_measurement_parses_timestamps(self):
        from myh_common.data_model.schema import LocationMeasurement

        measurement = LocationMeasurement.from_record(
            {'postalCode': 'H2X', 'contaminantId': 'lead', 'value': 6, 'measuredAt': '2024-06-01T00:00:00+00:00'}
        )

        self.assertEqual(datetime(2024, 6, 1, tzinfo=UTC), measurement.measured_at)
        self.assertEqual(6.0, measurement.value)

    def test_property_threshold_activity(self):
        from myh_common.data_model.schema import PropertyThreshold

        self.assertTrue(PropertyThreshold(property_id='aqi', jurisdiction_code='US').is_active)
        self.assertTrue(PropertyThreshold(property_id='aqi', jurisdiction_code='US', status='banned').is_active)
        self.assertFalse(PropertyThreshold(property_id='aqi', jurisdiction_code='US', status='historical').is_active)


class TestObservationValueFor(TstLambdas):
    def test_selects_shape_by_observation_type(self):
        from myh_common.data_model.schema.observation import (
            BinaryObservation,
            EndemicObservation,
            IncidenceObservation,
            NumericObservation,
            ZoneObservation,
            observation_value_for,
        )

        values = {
            'numericValue': Decimal('80'),
            'zoneValue': 'Moderate',
            'endemicValue': True,
            'incidenceValue': 12,
            'binaryValue': False,
        }

        self.assertEqual(NumericObservation(80.0), observation_value_for('numeric', values))
        self.assertEqual(ZoneObservation('Moderate'), observation_value_for('zone', values))
        self.assertEqual(EndemicObservation(True), observation_value_for('endemic', values))
        self.assertEqual(IncidenceObservation(12.0), observation_value_for('incidence', values))
        self.assertEqual(BinaryObservation(False), observation_value_for('binary', values))

    def test_wrong_shape_is_missing_value(self):
        from myh_common.data_model.schema.observation import (
            BinaryObservation,
            NumericObservation,
            ZoneObservation,
            observation_value_for,
        )

        self.assertEqual(NumericObservation(None), observation_value_for('numeric', {'zoneValue': 'Good'}))
        self.assertEqual(NumericObservation(None), observation_value_for('numeric', {'numericValue': True}))
        self.assertEqual(ZoneObservation(None), observation_value_for('zone', {'zoneValue': 3}))
        self.assertEqual(BinaryObservation(None), observation_value_for('binary', {'binaryValue': 'true'}))

    def test_unknown_type(self):
        from myh_common.data_model.schema.observation import observation_value_for

        self.assertIsNone(observation_value_for('radiation', {'numericValue': 1}))
