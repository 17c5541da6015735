class MYHBaseException(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MYHInvalidRequestException(MYHBaseException):
    """
    Client error in the request, corresponds to a 400 response
    """


class MYHUnauthorizedException(MYHInvalidRequestException):
    """
    Client is not authorized, corresponds to a 401 response
    """


class MYHAccessDeniedException(MYHInvalidRequestException):
    """
    Client is forbidden, corresponds to a 403 response
    """


class MYHNotFoundException(MYHInvalidRequestException):
    """
    Requested resource is not found, corresponds to a 404 response
    """


class MYHInternalException(MYHBaseException):
    """
    Internal error in the request, corresponds to a 500 response
    """


class MYHAwsServiceException(MYHBaseException):
    """
    An AWS service call failed
    """
