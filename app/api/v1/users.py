"""User management endpoints (admin only): CRUD plus filtered, paginated listing."""

from math import ceil
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from app.api.deps import get_user_service, require_admin
from app.repositories.users import SEARCH_FIELD, USER_ALLOWED_FIELDS
from app.schemas.common import APIResponse, ListResponse
from app.schemas.user import CreateUserRequest, UpdateUserRequest, UserResponse
from app.services.query import get_pagination, parse_query_params
from app.services.user_service import CreateUserCommand, UpdateUserCommand, UserService

router = APIRouter(dependencies=[Depends(require_admin)])

# Query keys accepted on GET /users; search is handled by the store itself.
LIST_QUERY_FIELDS = USER_ALLOWED_FIELDS | {SEARCH_FIELD}


@router.get(
    "",
    response_model=APIResponse[ListResponse[UserResponse]],
    response_model_exclude_none=True,
)
def list_users(
    request: Request,
    users: Annotated[UserService, Depends(get_user_service)],
) -> APIResponse[ListResponse[UserResponse]]:
    """
    List users.

    Query: page, limit (max 100), offset, sort=field,-field,
    field[op]=value with op in eq, ne, gt, gte, lt, lte, like, in, nin, and
    search=text (matches username or email).
    """
    # First value wins for repeated keys
    params: dict[str, str] = {}
    for key, value in request.query_params.multi_items():
        params.setdefault(key, value)

    offset, limit = get_pagination(params)
    options = parse_query_params(params, LIST_QUERY_FIELDS)
    items, total = users.list(offset, limit, options)

    return APIResponse(
        is_success=True,
        data=ListResponse[UserResponse](
            items=[UserResponse.model_validate(u) for u in items],
            total=total,
            page=offset // limit + 1,
            limit=limit,
            total_pages=ceil(total / limit),
        ),
    )


@router.get("/{user_id}", response_model=APIResponse[UserResponse], response_model_exclude_none=True)
def get_user(
    user_id: int,
    users: Annotated[UserService, Depends(get_user_service)],
) -> APIResponse[UserResponse]:
    user = users.get_by_id(user_id)
    return APIResponse(is_success=True, data=UserResponse.model_validate(user))


@router.post(
    "",
    response_model=APIResponse[UserResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    body: CreateUserRequest,
    users: Annotated[UserService, Depends(get_user_service)],
) -> APIResponse[UserResponse]:
    """Create an ACTIVE account. Role defaults to USER."""
    user = users.create(
        CreateUserCommand(
            username=body.username,
            email=str(body.email),
            password=body.password,
            role=body.role,
        )
    )
    return APIResponse(
        is_success=True,
        data=UserResponse.model_validate(user),
        message="User created successfully",
    )


@router.put("/{user_id}", response_model=APIResponse[UserResponse], response_model_exclude_none=True)
def update_user(
    user_id: int,
    body: UpdateUserRequest,
    users: Annotated[UserService, Depends(get_user_service)],
) -> APIResponse[UserResponse]:
    """Apply the fields present in the body."""
    user = users.update(
        UpdateUserCommand(
            id=user_id,
            username=body.username,
            email=str(body.email) if body.email else None,
            role=body.role,
            status=body.status,
        )
    )
    return APIResponse(
        is_success=True,
        data=UserResponse.model_validate(user),
        message="User updated successfully",
    )


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    users: Annotated[UserService, Depends(get_user_service)],
) -> Response:
    """Soft-delete the user. Returns no body."""
    users.delete(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
