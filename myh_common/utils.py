import json
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from functools import wraps
from json import JSONEncoder
from uuid import UUID

from aws_lambda_powertools.utilities.typing import LambdaContext
from botocore.exceptions import ClientError

from myh_common.config import config, logger
from myh_common.exceptions import (
    MYHAccessDeniedException,
    MYHInvalidRequestException,
    MYHNotFoundException,
    MYHUnauthorizedException,
)


class ResponseEncoder(JSONEncoder):
    """
    JSON Encoder to handle data types that come out of our schema
    """

    def default(self, o):
        if isinstance(o, Decimal):
            ratio = o.as_integer_ratio()
            if ratio[1] == 1:
                return ratio[0]
            return float(o)

        if isinstance(o, UUID):
            return str(o)

        if isinstance(o, date):
            return o.isoformat()

        if isinstance(o, set):
            return list(o)

        # This is just a catch-all that shouldn't realistically ever be reached.
        return super().default(o)


def _response(status_code: int, body: str) -> dict:
    return {
        'headers': {'Access-Control-Allow-Origin': '*'},
        'statusCode': status_code,
        'body': body,
    }


def api_handler(fn: Callable):
    """
    Decorator to wrap an api gateway event handler in standard logging, HTTPError handling.

    - Logs each access
    - JSON-encodes returned responses
    - Translates MYHBaseException subclasses to their respective HTTP response codes
    """

    @wraps(fn)
    @logger.inject_lambda_context
    def caught_handler(event, context: LambdaContext):
        # We have to jump through extra hoops to handle the case where APIGW sets headers to null
        (event.get('headers') or {}).pop('Authorization', None)
        (event.get('multiValueHeaders') or {}).pop('Authorization', None)

        logger.info(
            'Incoming request',
            method=event['httpMethod'],
            path=event['requestContext']['resourcePath'],
            query_params=event.get('queryStringParameters'),
            username=((event['requestContext'].get('authorizer') or {}).get('claims') or {}).get('cognito:username'),
            context=context,
        )

        try:
            return _response(200, json.dumps(fn(event, context), cls=ResponseEncoder))
        except MYHUnauthorizedException as e:
            logger.info('Unauthorized request', exc_info=e)
            return _response(401, json.dumps({'message': 'Unauthorized'}))
        except MYHAccessDeniedException as e:
            logger.info('Forbidden request', exc_info=e)
            return _response(403, json.dumps({'message': 'Access denied'}))
        except MYHNotFoundException as e:
            logger.info('Resource not found', exc_info=e)
            return _response(404, json.dumps({'message': f'{e.message}'}))
        except MYHInvalidRequestException as e:
            logger.info('Invalid request', exc_info=e)
            return _response(400, json.dumps({'message': e.message}))
        except ClientError as e:
            # Any boto3 ClientErrors we haven't already caught and transformed are probably on us
            logger.error('boto3 ClientError', response=e.response, exc_info=e)
            raise
        except Exception as e:
            logger.warning(
                'Error processing request',
                method=event['httpMethod'],
                path=event['requestContext']['resourcePath'],
                query_params=event.get('queryStringParameters'),
                context=context,
                exc_info=e,
            )
            raise

    return caught_handler


def get_caller_groups(event: dict) -> set[str]:
    """
    Read the caller's Cognito group membership from the authorizer claims.

    API Gateway hands the groups claim over as a single string, either space or comma separated, sometimes wrapped
    in brackets.

    :raises MYHUnauthorizedException: If the request carries no authorizer claims at all
    """
    try:
        claims = event['requestContext']['authorizer']['claims']
    except (KeyError, TypeError) as e:
        logger.error('Unauthorized access attempt!', exc_info=e)
        raise MYHUnauthorizedException('Unauthorized access attempt!') from e
    if not claims:
        logger.error('Unauthorized access attempt with empty authorizer claims!')
        raise MYHUnauthorizedException('Unauthorized access attempt!')

    raw_groups = claims.get('cognito:groups') or ''
    if isinstance(raw_groups, list):
        return set(raw_groups)
    return {group for group in raw_groups.strip('[]').replace(',', ' ').split(' ') if group}


def is_admin(event: dict) -> bool:
    return config.admin_group_name in get_caller_groups(event)


def authorize_admin(fn: Callable):
    """
    Authorize endpoint by requiring the caller to be a member of the administrators group
    """

    @wraps(fn)
    @logger.inject_lambda_context
    def authorized(event: dict, context: LambdaContext):
        logger.debug('Checking authorizer context', request_context=event['requestContext'])
        if not is_admin(event):
            logger.warning('Forbidden access attempt!')
            raise MYHAccessDeniedException('Forbidden access attempt!')
        return fn(event, context)

    return authorized


def get_path_parameter(event: dict, name: str) -> str:
    try:
        return event['pathParameters'][name]
    except (KeyError, TypeError) as e:
        logger.error('Access attempt with missing path parameter!', parameter=name)
        raise MYHInvalidRequestException(f'Missing path parameter: {name}') from e


def load_records_into_schemas(records: list[dict]) -> list[dict]:
    """
    Load raw table items through the schema registered for their record type
    """
    from myh_common.data_model.schema.base_record import BaseRecordSchema

    return [BaseRecordSchema.get_schema_by_type(record['type']).load(record) for record in records]
