from urllib.parse import unquote

from aws_lambda_powertools.utilities.typing import LambdaContext

from myh_common.config import config, logger
from myh_common.exceptions import MYHInvalidRequestException, MYHNotFoundException
from myh_common.status.catalog import SafetyCatalog
from myh_common.status.report import (
    aggregate_measurements,
    evaluate_measurements,
    evaluate_observations,
    worst_status_by_category,
)
from myh_common.status.severity import worst_status
from myh_common.utils import api_handler, get_path_parameter

MAX_POSTAL_CODES = 25


def _location_jurisdiction_code(location, catalog: SafetyCatalog) -> str | None:
    if location.jurisdiction_code in catalog.jurisdictions_by_code:
        return location.jurisdiction_code
    logger.info(
        'Location jurisdiction not found, deriving from state and country',
        postal_code=location.postal_code,
        jurisdiction_code=location.jurisdiction_code,
    )
    return catalog.jurisdiction_for_location(state=location.state, country=location.country)


def _is_fallback(data_source) -> bool:
    return getattr(data_source, 'is_fallback', False)


@api_handler
def get_location_safety(event: dict, context: LambdaContext):  # noqa: ARG001 unused-argument
    """
    Safety report for a single postal code: the latest value of each contaminant measured there, with its status
    against the applicable threshold.

    :param event: Standard API Gateway event
    :param context: Lambda context
    """
    postal_code = get_path_parameter(event, 'postalCode')
    data_source = config.data_source

    location = data_source.get_location(postal_code)
    if location is None:
        raise MYHNotFoundException('Location not found')

    catalog = SafetyCatalog.load(data_source, include_observations=False)
    jurisdiction_code = _location_jurisdiction_code(location, catalog)
    measurements = evaluate_measurements(data_source.get_location_measurements(postal_code), jurisdiction_code, catalog)
    logger.info('Evaluated location', postal_code=postal_code, jurisdiction_code=jurisdiction_code)

    return {
        'postalCode': location.postal_code,
        'city': location.city,
        'state': location.state,
        'country': location.country,
        'jurisdictionCode': jurisdiction_code,
        'measurements': measurements,
        'categoryStatus': worst_status_by_category(measurements, catalog.contaminants_by_id),
        'overallStatus': worst_status(measurement['status'] for measurement in measurements),
        'isFallback': _is_fallback(data_source),
    }


@api_handler
def query_locations_safety(event: dict, context: LambdaContext):  # noqa: ARG001 unused-argument
    """
    Combined safety report for several postal codes, typically every postal code of one city.

    All locations are evaluated in the jurisdiction of the first one found.

    :param event: Standard API Gateway event, with a comma separated postalCodes query parameter
    :param context: Lambda context
    """
    raw_postal_codes = (event.get('queryStringParameters') or {}).get('postalCodes') or ''
    postal_codes = list(dict.fromkeys(code.strip() for code in raw_postal_codes.split(',') if code.strip()))
    if not postal_codes:
        raise MYHInvalidRequestException('postalCodes is required')
    if len(postal_codes) > MAX_POSTAL_CODES:
        raise MYHInvalidRequestException(f'At most {MAX_POSTAL_CODES} postal codes may be requested at once')

    data_source = config.data_source
    locations = {}
    for postal_code in postal_codes:
        location = data_source.get_location(postal_code)
        if location is not None:
            locations[postal_code] = location
    if not locations:
        raise MYHNotFoundException('No locations found')

    catalog = SafetyCatalog.load(data_source, include_observations=False)
    first_location = next(iter(locations.values()))
    jurisdiction_code = _location_jurisdiction_code(first_location, catalog)
    measurements = aggregate_measurements(
        (data_source.get_location_measurements(postal_code) for postal_code in locations),
        catalog,
        jurisdiction_code,
    )
    logger.info('Evaluated locations', postal_codes=list(locations), jurisdiction_code=jurisdiction_code)

    return {
        'postalCodes': list(locations),
        'missingPostalCodes': [postal_code for postal_code in postal_codes if postal_code not in locations],
        'city': first_location.city,
        'state': first_location.state,
        'country': first_location.country,
        'jurisdictionCode': jurisdiction_code,
        'measurements': measurements,
        'categoryStatus': worst_status_by_category(measurements, catalog.contaminants_by_id),
        'overallStatus': worst_status(measurement['status'] for measurement in measurements),
        'isFallback': _is_fallback(data_source),
    }


@api_handler
def get_city_observations(event: dict, context: LambdaContext):  # noqa: ARG001 unused-argument
    """
    Safety report for a city under the observed property model.

    :param event: Standard API Gateway event
    :param context: Lambda context
    """
    country = unquote(get_path_parameter(event, 'country')).upper()
    state = unquote(get_path_parameter(event, 'state')).upper()
    city = unquote(get_path_parameter(event, 'city'))
    data_source = config.data_source

    catalog = SafetyCatalog.load(data_source)
    jurisdiction_code = catalog.jurisdiction_for_location(state=state, country=country)
    observations = evaluate_observations(
        data_source.get_location_observations(country=country, state=state, city=city), jurisdiction_code, catalog
    )
    logger.info('Evaluated city', country=country, state=state, city=city, jurisdiction_code=jurisdiction_code)

    return {
        'city': city,
        'state': state,
        'country': country,
        'jurisdictionCode': jurisdiction_code,
        'observations': observations,
        'categoryStatus': worst_status_by_category(observations, catalog.observed_properties_by_id),
        'overallStatus': worst_status(observation['status'] for observation in observations),
        'isFallback': _is_fallback(data_source),
    }
