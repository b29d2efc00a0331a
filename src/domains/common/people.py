# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared CRUD for people who log in: students and teachers.

A person row and its primary email row are always written together. The
username is unique per tenant among live people of the same kind, and so
is every email address.

Subclasses describe their tables through class attributes:

    >>> class StudentService(PersonService):
    ...     model = Student
    ...     email_model = StudentEmailAddress
    ...     id_field = "student_id"
    ...     response_model = StudentResponse
    ...     not_found_error = StudentNotFoundError
"""

import logging
from typing import Any, ClassVar

from sqlalchemy import Select, and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import ConflictError, NotFoundError
from src.domains.auth.password import hash_password
from src.domains.common.listing import ListParams, paginate
from src.domains.common.scoping import (
    Actor,
    commit_unique,
    conflict_for,
    create_audit_fields,
    load_owned,
    resolve_tenant_id,
    stamp_delete,
    stamp_update,
    tenant_filters,
)
from src.models.enums import Gender
from src.models.person import PersonCreate, PersonResponse, PersonUpdate

logger = logging.getLogger(__name__)


class DuplicateUsernameError(ConflictError):
    default_code = "DUPLICATE_USERNAME"
    default_message = "Username already exists"


class DuplicateEmailError(ConflictError):
    default_code = "DUPLICATE_EMAIL"
    default_message = "Email address already exists"


PERSON_CONFLICTS = {"username": DuplicateUsernameError, "email": DuplicateEmailError}


class PersonService:
    """Base service for students and teachers.

    Attributes:
        _db: Async database session.
    """

    model: ClassVar[Any]
    email_model: ClassVar[Any]
    id_field: ClassVar[str]
    response_model: ClassVar[type[PersonResponse]]
    not_found_error: ClassVar[type[NotFoundError]]
    kind: ClassVar[str] = "Person"

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    @property
    def _id_column(self) -> Any:
        return getattr(self.model, self.id_field)

    @property
    def _email_owner(self) -> Any:
        return getattr(self.email_model, self.id_field)

    @property
    def sort_fields(self) -> dict[str, Any]:
        return {
            "id": self._id_column,
            "fullName": self.model.full_name,
            "username": self.model.username,
            "age": self.model.age,
            "createdAt": self.model.created_at,
            "updatedAt": self.model.updated_at,
            "lastLoginAt": self.model.last_login_at,
        }

    async def _create_person(
        self, data: PersonCreate, actor: Actor, extra: dict[str, Any]
    ) -> PersonResponse:
        """Insert the person and its primary email in one transaction.

        Args:
            data: Validated create payload.
            actor: The caller.
            extra: Kind-specific columns (status, qualification, ...).

        Raises:
            DuplicateUsernameError: Username taken in the tenant.
            DuplicateEmailError: Email taken in the tenant.
        """
        tenant_id = resolve_tenant_id(actor, data.tenant_id)
        email = str(data.email_address).lower()

        if await self._username_taken(tenant_id, data.username):
            raise DuplicateUsernameError()
        if await self._email_taken(tenant_id, email):
            raise DuplicateEmailError()

        audit = create_audit_fields(actor)
        person = self.model(
            tenant_id=tenant_id,
            full_name=data.full_name,
            first_name=data.first_name,
            middle_name=data.middle_name,
            last_name=data.last_name,
            username=data.username,
            password_hash=hash_password(data.password),
            address=data.address,
            date_of_birth=data.date_of_birth,
            profile_picture_url=data.profile_picture_url,
            zip_code=data.zip_code,
            age=data.age,
            gender=data.gender,
            login_attempts=0,
            is_active=True,
            is_deleted=False,
            **extra,
            **audit,
        )

        try:
            self._db.add(person)
            await self._db.flush()

            self._db.add(
                self.email_model(
                    tenant_id=tenant_id,
                    email_address=email,
                    is_primary=True,
                    priority=1,
                    is_active=True,
                    is_deleted=False,
                    **{self.id_field: getattr(person, self.id_field)},
                    **audit,
                )
            )
            await self._db.commit()
        except IntegrityError as e:
            await self._db.rollback()
            conflict = conflict_for(e, PERSON_CONFLICTS)
            if conflict is None:
                raise
            raise conflict from e
        except Exception:
            await self._db.rollback()
            raise

        await self._db.refresh(person)
        logger.info(
            "%s created: %s (%s) in tenant %s",
            self.kind,
            getattr(person, self.id_field),
            person.username,
            tenant_id,
        )
        return self._to_response(person, email)

    async def _get_person(self, person_id: int, actor: Actor) -> PersonResponse:
        person = await self._load(person_id, actor)
        return self._to_response(person, await self._primary_email(person_id))

    def _list_statement(self, actor: Actor) -> Select:
        """Live people visible to the caller, paired with their primary email."""
        return (
            select(self.model, self.email_model.email_address)
            .outerjoin(
                self.email_model,
                and_(
                    self._email_owner == self._id_column,
                    self.email_model.is_primary.is_(True),
                    self.email_model.is_deleted.is_(False),
                ),
            )
            .where(*tenant_filters(self.model, actor))
        )

    async def _list_people(
        self,
        stmt: Select,
        params: ListParams,
        gender: Gender | None = None,
        min_age: int | None = None,
        max_age: int | None = None,
    ) -> tuple[list[PersonResponse], int]:
        if gender is not None:
            stmt = stmt.where(self.model.gender == gender)
        if min_age is not None:
            stmt = stmt.where(self.model.age >= min_age)
        if max_age is not None:
            stmt = stmt.where(self.model.age <= max_age)

        rows, total = await paginate(
            self._db,
            stmt,
            params,
            sort_fields=self.sort_fields,
            default_sort=self.model.created_at,
            search_columns=[
                self.model.full_name,
                self.model.username,
                self.email_model.email_address,
            ],
        )
        return [self._to_response(person, email) for person, email in rows], total

    async def _update_person(
        self, person_id: int, data: PersonUpdate, actor: Actor
    ) -> PersonResponse:
        """Apply a partial update; username and email are re-checked for clashes."""
        person = await self._load(person_id, actor)
        changes = data.model_dump(exclude_unset=True)

        username = changes.get("username")
        if username and username != person.username:
            if await self._username_taken(person.tenant_id, username, exclude_id=person_id):
                raise DuplicateUsernameError()

        password = changes.pop("password", None)
        if password:
            changes["password_hash"] = hash_password(password)

        email = changes.pop("email_address", None)
        primary = await self._primary_email_row(person_id)
        if email:
            email = str(email).lower()
            current = primary.email_address if primary else None
            if email != current:
                if await self._email_taken(person.tenant_id, email, exclude_owner=person_id):
                    raise DuplicateEmailError()
                if primary is not None:
                    stamp_update(primary, actor, {"email_address": email})
                else:
                    self._db.add(
                        self.email_model(
                            tenant_id=person.tenant_id,
                            email_address=email,
                            is_primary=True,
                            priority=1,
                            is_active=True,
                            is_deleted=False,
                            **{self.id_field: person_id},
                            **create_audit_fields(actor),
                        )
                    )

        stamp_update(person, actor, changes)
        await commit_unique(self._db, PERSON_CONFLICTS)
        await self._db.refresh(person)

        logger.info("%s updated: %s fields=%s", self.kind, person_id, sorted(changes))
        return self._to_response(person, email or (primary.email_address if primary else None))

    async def _delete_person(self, person_id: int, actor: Actor) -> None:
        """Soft-delete the person and all of its email rows."""
        person = await self._load(person_id, actor)
        result = await self._db.execute(
            select(self.email_model).where(
                self._email_owner == person_id, self.email_model.is_deleted.is_(False)
            )
        )
        stamp_delete([person, *result.scalars().all()], actor)
        await self._db.commit()
        logger.info("%s deleted: %s by %s", self.kind, person_id, actor.id)

    # Helpers

    async def _load(self, person_id: int, actor: Actor) -> Any:
        return await load_owned(
            self._db, self.model, self._id_column, person_id, actor, self.not_found_error
        )

    async def _primary_email_row(self, person_id: int) -> Any:
        result = await self._db.execute(
            select(self.email_model)
            .where(
                self._email_owner == person_id,
                self.email_model.is_primary.is_(True),
                self.email_model.is_deleted.is_(False),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _primary_email(self, person_id: int) -> str | None:
        row = await self._primary_email_row(person_id)
        return row.email_address if row is not None else None

    async def _username_taken(
        self, tenant_id: int, username: str, exclude_id: int | None = None
    ) -> bool:
        stmt = select(func.count()).select_from(self.model).where(
            self.model.tenant_id == tenant_id,
            func.lower(self.model.username) == username.lower(),
            self.model.is_deleted.is_(False),
        )
        if exclude_id is not None:
            stmt = stmt.where(self._id_column != exclude_id)
        return ((await self._db.execute(stmt)).scalar() or 0) > 0

    async def _email_taken(
        self, tenant_id: int, email: str, exclude_owner: int | None = None
    ) -> bool:
        stmt = select(func.count()).select_from(self.email_model).where(
            self.email_model.tenant_id == tenant_id,
            func.lower(self.email_model.email_address) == email,
            self.email_model.is_deleted.is_(False),
        )
        if exclude_owner is not None:
            stmt = stmt.where(self._email_owner != exclude_owner)
        return ((await self._db.execute(stmt)).scalar() or 0) > 0

    def _to_response(self, person: Any, primary_email: str | None) -> PersonResponse:
        response = self.response_model.model_validate(person)
        response.primary_email = primary_email
        return response
