"""
Lambda function for the Grades REST API

Routes API Gateway proxy requests to the grade service:

    GET    /grades[?detailed=true]
    POST   /grades
    GET    /grades/{id}
    PATCH  /grades/{id}     body: JSON array of patch operations
    DELETE /grades/{id}

The caller is authenticated upstream by the API Gateway JWT authorizer; its
claims arrive in ``requestContext.authorizer``.
"""

import json
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from src.common.config import load_config
from src.grades import GradeService, GradeServiceError, GradeValidationError
from src.patch import PatchError, PatchErrorKind
from src.storage import GradeVersionConflictError


# Custom JSON encoder for Decimal types from DynamoDB
class DecimalEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Decimal):
            if obj % 1 == 0:
                return int(obj)
            else:
                return float(obj)
        return super(DecimalEncoder, self).default(obj)


CONFIG = load_config()
CORS_ORIGIN = CONFIG["api"]["cors_origin"]

logger = logging.getLogger()
logger.setLevel(getattr(logging, str(CONFIG["api"]["log_level"]).upper(), logging.INFO))

PATCH_STATUS_CODES = {
    PatchErrorKind.ACCESS_DENIED: 403,
    PatchErrorKind.INVALID_PATH: 400,
    PatchErrorKind.INVALID_FROM_PATH: 400,
    PatchErrorKind.INVALID_OPERATION: 400,
    PatchErrorKind.TEST_FAILED: 400,
}

_service: Optional[GradeService] = None


def get_grade_service() -> GradeService:
    """Create the grade service on first use so imports stay free of AWS calls."""
    global _service
    if _service is None:
        _service = GradeService.from_config(CONFIG)
    return _service


def _respond(status_code: int, body: Any) -> Dict[str, Any]:
    return {"statusCode": status_code, "body": json.dumps(body, cls=DecimalEncoder, default=str)}


def _error(status_code: int, message: str, code: str, **extra: Any) -> Dict[str, Any]:
    body = {"error": message, "code": code}
    body.update(extra)
    return _respond(status_code, body)


def _get_user_id(event: Dict[str, Any]) -> Optional[str]:
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    claims = authorizer.get("claims") or (authorizer.get("jwt") or {}).get("claims") or authorizer
    user_id = claims.get("userId") or claims.get("sub")
    return str(user_id) if user_id else None


def _route_from_path(event: Dict[str, Any]) -> tuple:
    """Derive (resource, grade_id) from the raw path when ``resource`` is missing."""
    path = event.get("path", "") or ""
    stage = (event.get("requestContext") or {}).get("stage")
    if stage and path.startswith(f"/{stage}/"):
        path = path[len(stage) + 1 :]

    parts = [s for s in path.split("/") if s]
    if parts == ["grades"]:
        return "/grades", None
    if len(parts) == 2 and parts[0] == "grades":
        return "/grades/{id}", parts[1]
    return "", None


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Main Lambda handler for API requests."""
    try:
        http_method = event.get("httpMethod", "")
        path_params = event.get("pathParameters") or {}
        query_params = event.get("queryStringParameters") or {}
        resource = event.get("resource", "")

        grade_id = path_params.get("id")
        if not resource:
            resource, grade_id = _route_from_path(event)

        logger.info(f"Request: {http_method} {resource} {grade_id or ''}".rstrip())

        if http_method == "OPTIONS":
            response = {"statusCode": 200, "body": ""}
        else:
            user_id = _get_user_id(event)
            if not user_id:
                response = _error(401, "No token provided.", "NO_TOKEN")
            else:
                try:
                    body = json.loads(event["body"]) if event.get("body") else None
                except json.JSONDecodeError:
                    response = _error(400, "Request body must be valid JSON", "INVALID_JSON")
                else:
                    response = _dispatch(http_method, resource, user_id, grade_id, query_params, body)

    except Exception as e:
        logger.error(f"Error handling request: {str(e)}", exc_info=True)
        response = _error(500, "Internal server error", "INTERNAL_ERROR")

    response["headers"] = {
        "Access-Control-Allow-Origin": CORS_ORIGIN,
        "Access-Control-Allow-Headers": "Content-Type,Authorization",
        "Access-Control-Allow-Methods": "GET,POST,PATCH,DELETE,OPTIONS",
    }
    return response


def _dispatch(
    http_method: str,
    resource: str,
    user_id: str,
    grade_id: Optional[str],
    query_params: Dict[str, str],
    body: Any,
) -> Dict[str, Any]:
    try:
        if resource == "/grades" and http_method == "GET":
            return list_grades(user_id, query_params)
        if resource == "/grades" and http_method == "POST":
            return create_grade(user_id, body)
        if resource == "/grades/{id}" and grade_id:
            if http_method == "GET":
                return get_grade(user_id, grade_id)
            if http_method == "PATCH":
                return update_grade(user_id, grade_id, body)
            if http_method == "DELETE":
                return delete_grade(user_id, grade_id)
        return _error(404, "Not found", "NOT_FOUND")

    except PatchError as e:
        details = e.to_dict()
        details.pop("error")
        code = details.pop("code")
        return _error(PATCH_STATUS_CODES[e.kind], str(e), code, **details)
    except GradeValidationError as e:
        return _error(400, "Grade failed validation", "VALIDATION_ERROR", problems=e.problems)
    except GradeVersionConflictError as e:
        return _error(409, str(e), "VERSION_CONFLICT")
    except GradeServiceError as e:
        return _error(e.status_code, str(e), e.code)


def list_grades(user_id: str, query_params: Dict[str, str]) -> Dict[str, Any]:
    """List the caller's grades; full documents with ``?detailed=true``."""
    detailed = str(query_params.get("detailed", "")).lower() == "true"
    grades = get_grade_service().list_grades(user_id, detailed=detailed)
    return _respond(200, {"grades": grades, "count": len(grades)})


def create_grade(user_id: str, body: Any) -> Dict[str, Any]:
    grade = get_grade_service().create_grade(user_id, body)
    return _respond(201, grade)


def get_grade(user_id: str, grade_id: str) -> Dict[str, Any]:
    return _respond(200, get_grade_service().get_grade(user_id, grade_id))


def update_grade(user_id: str, grade_id: str, body: Any) -> Dict[str, Any]:
    """Apply a patch document (JSON array of operations) to a grade."""
    grade = get_grade_service().update_grade(user_id, grade_id, body)
    return _respond(200, grade)


def delete_grade(user_id: str, grade_id: str) -> Dict[str, Any]:
    get_grade_service().delete_grade(user_id, grade_id)
    return _respond(200, {"gradeId": grade_id, "deleted": True})
