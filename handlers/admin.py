# ruff: noqa: N815 invalid-name
import json
from decimal import Decimal

from aws_lambda_powertools.utilities.typing import LambdaContext
from marshmallow import ValidationError
from marshmallow.fields import Raw, String
from marshmallow.validate import Length, OneOf

from myh_common.config import config, logger
from myh_common.data_model.schema.base_record import JurisdictionCode, StrictSchema
from myh_common.data_model.schema.observation import observation_value_for
from myh_common.exceptions import MYHInvalidRequestException, MYHNotFoundException
from myh_common.status.catalog import SafetyCatalog
from myh_common.status.evaluator import evaluate_contaminant, evaluate_observation
from myh_common.status.report import threshold_fields
from myh_common.utils import api_handler, authorize_admin, get_path_parameter

CONTAMINANTS = 'contaminants'
PROPERTIES = 'properties'


class EvaluationPreviewRequestSchema(StrictSchema):
    """Request body for previewing the status a value would get"""

    entityType = String(required=True, allow_none=False, validate=OneOf([CONTAMINANTS, PROPERTIES]))
    entityId = String(required=True, allow_none=False, validate=Length(1, 100))
    jurisdictionCode = JurisdictionCode(required=True, allow_none=False)
    # Interpreted according to the entity: a number for contaminants, the observation type's shape for properties
    value = Raw(required=True, allow_none=True)


@api_handler
@authorize_admin
def admin_api_handler(event: dict, context: LambdaContext):
    """
    Administrator tools for inspecting how thresholds resolve and evaluate.

    :param event: Standard API Gateway event
    :param context: Lambda context
    """
    http_method = event.get('httpMethod')
    resource_path = event.get('resource')

    match (http_method, resource_path):
        case ('GET', '/v1/admin/{entityType}/{entityId}/thresholds/{jurisdictionCode}'):
            return _get_resolved_threshold(event, context)
        case ('POST', '/v1/admin/evaluations'):
            return _preview_evaluation(event, context)

    # If we get here, the method/resource combination is not supported
    raise MYHInvalidRequestException(f'Unsupported method or resource: {http_method} {resource_path}')


def _load_catalog(entity_type: str) -> SafetyCatalog:
    return SafetyCatalog.load(config.data_source, include_observations=entity_type == PROPERTIES)


def _resolve(catalog: SafetyCatalog, entity_type: str, entity_id: str, jurisdiction_code: str):
    if entity_type == CONTAMINANTS:
        entity = catalog.contaminants_by_id.get(entity_id)
        resolver = catalog.contaminant_resolver
        not_found_message = 'Contaminant not found'
    elif entity_type == PROPERTIES:
        entity = catalog.observed_properties_by_id.get(entity_id)
        resolver = catalog.property_resolver
        not_found_message = 'Observed property not found'
    else:
        raise MYHInvalidRequestException(f'Unsupported entity type: {entity_type}')

    if entity is None:
        raise MYHNotFoundException(not_found_message)
    return entity, resolver.resolve_with_tier(entity_id, jurisdiction_code), resolver.default_threshold(entity_id)


def _get_resolved_threshold(event: dict, context: LambdaContext):  # noqa: ARG001 unused-argument
    entity_type = get_path_parameter(event, 'entityType')
    entity_id = get_path_parameter(event, 'entityId')
    jurisdiction_code = get_path_parameter(event, 'jurisdictionCode').upper()

    catalog = _load_catalog(entity_type)
    _, resolved, default_threshold = _resolve(catalog, entity_type, entity_id, jurisdiction_code)
    if resolved is None:
        raise MYHNotFoundException('No threshold applies to this jurisdiction')

    logger.info(
        'Resolved threshold for admin',
        entity_type=entity_type,
        entity_id=entity_id,
        jurisdiction_code=jurisdiction_code,
        tier=resolved.tier,
    )
    return {
        'entityType': entity_type,
        'entityId': entity_id,
        'jurisdictionCode': jurisdiction_code,
        **threshold_fields(resolved, default_threshold),
    }


def _preview_evaluation(event: dict, context: LambdaContext):  # noqa: ARG001 unused-argument
    try:
        body = EvaluationPreviewRequestSchema().load(json.loads(event.get('body') or '{}', parse_float=Decimal))
    except json.JSONDecodeError as e:
        raise MYHInvalidRequestException('Request body is not valid JSON') from e
    except ValidationError as e:
        raise MYHInvalidRequestException(f'Invalid request: {e.messages}') from e

    entity_type = body['entityType']
    catalog = _load_catalog(entity_type)
    entity, resolved, default_threshold = _resolve(catalog, entity_type, body['entityId'], body['jurisdictionCode'])
    threshold = resolved.threshold if resolved is not None else None

    if entity_type == CONTAMINANTS:
        status = evaluate_contaminant(body['value'], entity, threshold)
    else:
        observation = observation_value_for(entity.observation_type, {f'{entity.observation_type}Value': body['value']})
        status = evaluate_observation(observation, entity, threshold)

    logger.info('Previewed evaluation', entity_type=entity_type, entity_id=entity.id, status=status)
    return {
        'entityType': entity_type,
        'entityId': entity.id,
        'jurisdictionCode': body['jurisdictionCode'],
        'value': body['value'],
        'status': status,
        **threshold_fields(resolved, default_threshold),
    }
