# Importing each record module registers its schema with BaseRecordSchema
from myh_common.data_model.schema.contaminant import (
    Contaminant,
    ContaminantRecordSchema,
    ContaminantThreshold,
    ContaminantThresholdRecordSchema,
    LocationMeasurement,
    LocationMeasurementRecordSchema,
)
from myh_common.data_model.schema.jurisdiction import (
    Jurisdiction,
    JurisdictionRecordSchema,
    Location,
    LocationRecordSchema,
)
from myh_common.data_model.schema.observation import LocationObservation, LocationObservationRecordSchema
from myh_common.data_model.schema.observed_property import (
    ObservedProperty,
    ObservedPropertyRecordSchema,
    PropertyThreshold,
    PropertyThresholdRecordSchema,
)

__all__ = [
    'Contaminant',
    'ContaminantRecordSchema',
    'ContaminantThreshold',
    'ContaminantThresholdRecordSchema',
    'Jurisdiction',
    'JurisdictionRecordSchema',
    'Location',
    'LocationMeasurement',
    'LocationMeasurementRecordSchema',
    'LocationObservation',
    'LocationObservationRecordSchema',
    'LocationRecordSchema',
    'ObservedProperty',
    'ObservedPropertyRecordSchema',
    'PropertyThreshold',
    'PropertyThresholdRecordSchema',
]
