"""Session lifecycle domain service.

This module owns every state change a session goes through: creation with
call/chat provisioning, joining, leaving, participant removal and ending.
Store writes are committed before the matching provider call; when a
provider call that must succeed fails, the store write is compensated.
"""

from dataclasses import dataclass
from enum import Enum
from typing import (
    Awaitable,
    Callable,
    List,
    Optional,
)

from app.core.logging import logger
from app.domain.entities import (
    Difficulty,
    SessionEntity,
    SessionStatus,
    UserEntity,
)
from app.domain.exceptions import (
    BadRequestError,
    ConcurrentModificationError,
    ForbiddenActionError,
    InvalidSessionStateError,
    ParticipantNotFoundError,
    ProvisioningError,
    SessionCapacityError,
    SessionNotFoundError,
)
from app.domain.repositories import (
    SessionRepositoryInterface,
    UserRepositoryInterface,
)
from app.domain.services.provisioner import (
    CollaborationProvisioner,
    ProvisioningMetadata,
)


class JoinOutcome(str, Enum):
    """How a successful join was resolved."""

    JOINED = "joined"
    REJOINED_AS_HOST = "rejoined_as_host"
    REJOINED_AS_PARTICIPANT = "rejoined_as_participant"


JOIN_MESSAGES = {
    JoinOutcome.JOINED: "Joined session successfully",
    JoinOutcome.REJOINED_AS_HOST: "Rejoined session as host",
    JoinOutcome.REJOINED_AS_PARTICIPANT: "Rejoined session as participant",
}


@dataclass
class SessionDetails:
    """A session with its host and participants resolved to user records."""

    session: SessionEntity
    host: Optional[UserEntity]
    participants: List[UserEntity]


@dataclass
class JoinResult:
    """Result of a join request."""

    details: SessionDetails
    outcome: JoinOutcome

    @property
    def message(self) -> str:
        return JOIN_MESSAGES[self.outcome]

    @property
    def is_rejoin(self) -> bool:
        return self.outcome is not JoinOutcome.JOINED


class SessionDomainService:
    """Domain service for the session lifecycle.

    Membership and status changes are read-validate-write cycles against the
    store's conditional ``save``; a lost race re-reads and re-validates, up
    to ``max_write_attempts`` times. Provider calls are made once, in order,
    and never retried.
    """

    def __init__(
        self,
        session_repository: SessionRepositoryInterface,
        user_repository: UserRepositoryInterface,
        provisioner: CollaborationProvisioner,
        default_max_participants: int = 10,
        list_limit: int = 20,
        max_write_attempts: int = 3,
    ):
        """Initialize the session domain service.

        Args:
            session_repository: Repository for session data access
            user_repository: Repository for user data access
            provisioner: Video call and chat provider adapter
            default_max_participants: Capacity used when a create request names none
            list_limit: Maximum number of sessions returned by list queries
            max_write_attempts: Conditional write attempts before giving up
        """
        self.session_repository = session_repository
        self.user_repository = user_repository
        self.provisioner = provisioner
        self.default_max_participants = default_max_participants
        self.list_limit = list_limit
        self.max_write_attempts = max_write_attempts

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_session(
        self,
        host: UserEntity,
        problem: Optional[str],
        difficulty: Optional[str],
        max_participants: Optional[int] = None,
    ) -> SessionDetails:
        """Create a session and provision its call and chat channel.

        Either the session row, the call and the chat channel all exist when
        this returns, or the row has been deleted and an error is raised.

        Args:
            host: User creating the session
            problem: Problem title
            difficulty: One of easy, medium, hard
            max_participants: Optional participant limit

        Returns:
            SessionDetails: The created session

        Raises:
            BadRequestError: If input is missing or invalid
            ProvisioningError: If the call or chat channel could not be created
        """
        problem = (problem or "").strip()
        difficulty = (difficulty or "").strip().lower()
        if not problem or not difficulty:
            raise BadRequestError("Problem and difficulty are required")

        try:
            difficulty_value = Difficulty(difficulty)
        except ValueError:
            allowed = ", ".join(d.value for d in Difficulty)
            raise BadRequestError(f"Difficulty must be one of: {allowed}", field="difficulty")

        if max_participants is not None and max_participants <= 0:
            raise BadRequestError("maxParticipants must be a positive integer", field="maxParticipants")

        session = SessionEntity(
            problem=problem,
            difficulty=difficulty_value,
            host_id=host.id,
            max_participants=max_participants or self.default_max_participants,
        )
        session = await self.session_repository.create(session)

        logger.info(
            "session_row_created",
            session_id=session.id,
            call_id=session.call_id,
            host_id=host.id,
            problem=problem,
            difficulty=difficulty_value.value,
        )

        metadata = ProvisioningMetadata(
            created_by_id=host.external_id,
            problem=problem,
            difficulty=difficulty_value.value,
            session_id=session.id,
        )

        try:
            await self.provisioner.create_call(session.call_id, metadata)
        except ProvisioningError as e:
            logger.error(
                "session_call_creation_failed",
                session_id=session.id,
                call_id=session.call_id,
                error=str(e),
                detail=e.detail,
            )
            await self._rollback_creation(session)
            raise ProvisioningError(
                "create_call",
                session.call_id,
                e.detail,
                message="Failed to create video room. Please try again.",
                session_id=session.id,
            ) from e

        try:
            await self.provisioner.create_chat_channel(session.call_id, metadata)
        except ProvisioningError as e:
            logger.error(
                "session_chat_creation_failed",
                session_id=session.id,
                call_id=session.call_id,
                error=str(e),
                detail=e.detail,
            )
            await self._rollback_creation(session)
            await self._best_effort("delete_call", self.provisioner.delete_call, session)
            raise ProvisioningError(
                "create_chat_channel",
                session.call_id,
                e.detail,
                message="Failed to create chat room. Please try again.",
                session_id=session.id,
            ) from e

        logger.info("session_created", session_id=session.id, call_id=session.call_id)
        return SessionDetails(session=session, host=host, participants=[])

    async def _rollback_creation(self, session: SessionEntity) -> None:
        deleted = await self.session_repository.delete(session.id)
        if deleted:
            logger.info("session_creation_rolled_back", session_id=session.id, call_id=session.call_id)
        else:
            logger.error("session_rollback_delete_failed", session_id=session.id, call_id=session.call_id)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    async def join_session(self, session_id: str, user: UserEntity) -> JoinResult:
        """Join a session, or rejoin one the user already belongs to.

        Args:
            session_id: Session to join
            user: Joining user

        Returns:
            JoinResult: The populated session and how the join resolved

        Raises:
            SessionNotFoundError: If the session doesn't exist
            InvalidSessionStateError: If the session is completed
            SessionCapacityError: If the session is full
            ProvisioningError: If chat membership could not be granted
        """
        outcome = JoinOutcome.JOINED

        def apply(session: SessionEntity) -> bool:
            nonlocal outcome
            if not session.is_active:
                raise InvalidSessionStateError("Cannot join a completed session", session.id)
            if session.is_host(user.id):
                outcome = JoinOutcome.REJOINED_AS_HOST
                return False
            if session.has_participant(user.id):
                outcome = JoinOutcome.REJOINED_AS_PARTICIPANT
                return False
            if session.is_full:
                raise SessionCapacityError(session.id, session.max_participants)

            outcome = JoinOutcome.JOINED
            session.add_participant(user.id)
            return True

        session = await self._update_with_retry(session_id, apply)

        if outcome is JoinOutcome.JOINED:
            try:
                await self.provisioner.add_members(session.call_id, [user.external_id])
            except ProvisioningError as e:
                logger.error(
                    "session_join_chat_add_failed",
                    session_id=session.id,
                    call_id=session.call_id,
                    user_id=user.id,
                    error=str(e),
                )
                await self._revert_join(session_id, user)
                raise ProvisioningError(
                    "add_members",
                    e.call_id,
                    e.detail,
                    message="Failed to add user to session chat",
                    session_id=session_id,
                ) from e

            logger.info(
                "session_joined",
                session_id=session.id,
                user_id=user.id,
                participant_count=len(session.participant_ids),
            )
        else:
            logger.info("session_rejoined", session_id=session.id, user_id=user.id, outcome=outcome.value)

        return JoinResult(details=await self._populate(session), outcome=outcome)

    async def _revert_join(self, session_id: str, user: UserEntity) -> bool:
        try:
            await self._update_with_retry(session_id, lambda s: s.remove_participant(user.id))
        except Exception as e:
            logger.error(
                "session_join_revert_failed",
                session_id=session_id,
                user_id=user.id,
                error=str(e),
                exc_info=True,
            )
            return False

        logger.info("session_join_reverted", session_id=session_id, user_id=user.id)
        return True

    async def leave_session(self, session_id: str, user: UserEntity) -> SessionDetails:
        """Leave a session as a participant.

        Chat membership removal is best-effort; the leave itself always stands.

        Raises:
            SessionNotFoundError: If the session doesn't exist
            InvalidSessionStateError: If completed, if the user is the host,
                or if the user is not a participant
        """

        def apply(session: SessionEntity) -> bool:
            if not session.is_active:
                raise InvalidSessionStateError("Cannot leave a completed session", session.id)
            if session.is_host(user.id):
                raise InvalidSessionStateError(
                    "Host cannot leave their own session; end it instead", session.id
                )
            if not session.has_participant(user.id):
                raise InvalidSessionStateError("You are not a participant in this session", session.id)
            return session.remove_participant(user.id)

        session = await self._update_with_retry(session_id, apply)
        logger.info("session_left", session_id=session.id, user_id=user.id)

        await self._best_effort(
            "remove_members",
            lambda call_id: self.provisioner.remove_members(call_id, [user.external_id]),
            session,
        )
        return await self._populate(session)

    async def remove_participant(
        self,
        session_id: str,
        actor: UserEntity,
        participant_id: Optional[str],
    ) -> SessionDetails:
        """Remove a participant. Host only.

        Raises:
            SessionNotFoundError: If the session doesn't exist
            ForbiddenActionError: If the actor is not the host
            InvalidSessionStateError: If the session is completed
            BadRequestError: If no participant id was given
            ParticipantNotFoundError: If the target is not a participant
        """

        def apply(session: SessionEntity) -> bool:
            if not session.is_host(actor.id):
                raise ForbiddenActionError("Only the host can remove participants", "remove_participant")
            if not session.is_active:
                raise InvalidSessionStateError("Cannot modify a completed session", session.id)
            if not participant_id:
                raise BadRequestError("Participant ID is required", field="participantId")
            if not session.has_participant(participant_id):
                raise ParticipantNotFoundError(session.id, participant_id)
            return session.remove_participant(participant_id)

        session = await self._update_with_retry(session_id, apply)
        logger.info(
            "session_participant_removed",
            session_id=session.id,
            host_id=actor.id,
            participant_id=participant_id,
        )

        target = await self.user_repository.get_by_id(participant_id)
        if target is None:
            logger.warning(
                "removed_participant_user_missing",
                session_id=session.id,
                participant_id=participant_id,
            )
        else:
            await self._best_effort(
                "remove_members",
                lambda call_id: self.provisioner.remove_members(call_id, [target.external_id]),
                session,
            )

        return await self._populate(session)

    # ------------------------------------------------------------------
    # End
    # ------------------------------------------------------------------

    async def end_session(self, session_id: str, actor: UserEntity) -> SessionDetails:
        """End a session. Host only.

        Provider teardown is best-effort; the session is marked completed
        even if the call or chat channel could not be deleted.

        Raises:
            SessionNotFoundError: If the session doesn't exist
            ForbiddenActionError: If the actor is not the host
            InvalidSessionStateError: If the session is already completed
        """
        session = await self._get_session_or_raise(session_id)

        if not session.is_host(actor.id):
            raise ForbiddenActionError("Only the host can end the session", "end_session")
        if not session.is_active:
            raise InvalidSessionStateError("Session is already completed", session.id)

        await self._best_effort("delete_call", self.provisioner.delete_call, session)
        await self._best_effort("delete_chat_channel", self.provisioner.delete_chat_channel, session)

        def apply(current: SessionEntity) -> bool:
            if not current.is_active:
                # Another end request completed the session first
                raise InvalidSessionStateError("Session is already completed", current.id)
            current.complete()
            return True

        session = await self._update_with_retry(session_id, apply)
        logger.info("session_ended", session_id=session.id, call_id=session.call_id)
        return await self._populate(session)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_session(self, session_id: str) -> SessionDetails:
        """Get a populated session.

        Raises:
            SessionNotFoundError: If the session doesn't exist
        """
        session = await self._get_session_or_raise(session_id)
        return await self._populate(session)

    async def list_sessions(self, status: SessionStatus = SessionStatus.ACTIVE) -> List[SessionDetails]:
        """List the newest sessions with the given status."""
        sessions = await self.session_repository.list_by_status(status, limit=self.list_limit)
        return await self._populate_many(sessions)

    async def list_user_sessions(
        self,
        user: UserEntity,
        status: Optional[SessionStatus] = SessionStatus.COMPLETED,
    ) -> List[SessionDetails]:
        """List the newest sessions the user hosted or joined."""
        sessions = await self.session_repository.list_for_member(user.id, status=status, limit=self.list_limit)
        return await self._populate_many(sessions)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_session_or_raise(self, session_id: str) -> SessionEntity:
        session = await self.session_repository.get_by_id(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def _update_with_retry(
        self,
        session_id: str,
        apply: Callable[[SessionEntity], bool],
    ) -> SessionEntity:
        """Read, validate and conditionally write a session.

        ``apply`` validates the freshly read session, raising a domain error
        to abort, and mutates it in place. It returns False when there is
        nothing to write.
        """
        for attempt in range(1, self.max_write_attempts + 1):
            session = await self._get_session_or_raise(session_id)
            if not apply(session):
                return session

            try:
                return await self.session_repository.save(session)
            except ConcurrentModificationError:
                logger.warning(
                    "session_write_conflict",
                    session_id=session_id,
                    attempt=attempt,
                    max_attempts=self.max_write_attempts,
                )

        raise ConcurrentModificationError(session_id)

    async def _best_effort(
        self,
        operation: str,
        call: Callable[[str], Awaitable[None]],
        session: SessionEntity,
    ) -> bool:
        try:
            await call(session.call_id)
            return True
        except ProvisioningError as e:
            logger.warning(
                "provider_operation_failed_ignored",
                operation=operation,
                session_id=session.id,
                call_id=session.call_id,
                error=str(e),
                detail=e.detail,
            )
            return False

    async def _populate(self, session: SessionEntity) -> SessionDetails:
        return (await self._populate_many([session]))[0]

    async def _populate_many(self, sessions: List[SessionEntity]) -> List[SessionDetails]:
        user_ids = {user_id for session in sessions for user_id in session.member_ids}
        users = await self.user_repository.get_many(user_ids) if user_ids else {}

        results = []
        for session in sessions:
            missing = [uid for uid in session.member_ids if uid not in users]
            if missing:
                logger.warning("session_member_records_missing", session_id=session.id, user_ids=missing)

            results.append(
                SessionDetails(
                    session=session,
                    host=users.get(session.host_id),
                    participants=[users[uid] for uid in session.participant_ids if uid in users],
                )
            )
        return results
