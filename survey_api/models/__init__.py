from .survey import Survey
from .access_request import AccessRequest
from .access_token import AccessToken
