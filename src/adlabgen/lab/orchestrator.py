"""
ADLabGen Lab Orchestrator

Sequences a lab population run against a directory adapter.

Stages (strictly sequential):
1. Load & Validate      - classify groups, check the seed pool
2. Group Provisioning   - create missing groups, skip ones already in place
3. Role->Access Wiring  - nest each role group into random access groups
4. Identity Generation  - synthesize unique account identifiers
5. User Provisioning    - create users, wire them into groups
6. Export               - write the credential artifact if requested

Failure semantics:
- Stages 1-2 and identity generation fail the whole run (shared-state
  prerequisites): the run returns Failure(LabGenError)
- Per-item failures in stages 3 and 5 are logged, counted and skipped
- A fatal error after users were created still exports their credentials
  when export is enabled

Assumption: every object lives directly under the target container, so a
DN is always CN=<name>,<target_dn>.
"""

from __future__ import annotations

import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import attrs
import structlog
from returns.result import Failure, Result, Success

from adlabgen.core.exceptions import (
    CredentialExportError,
    EmptySeedPool,
    GroupLocationConflict,
    GroupProvisioningError,
    LabGenError,
    StateError,
    UnusableNameSeed,
)
from adlabgen.core.state_machine import RunStage, RunStateMachine, Transition
from adlabgen.core.types import (
    Credential,
    GeneratedIdentity,
    GroupScope,
    GroupSpec,
    GroupType,
    MembershipOp,
    NameSeed,
    ObjectType,
    OperatingMode,
)
from adlabgen.directory.adapter import DirectoryAdapter, child_dn
from adlabgen.generation.membership import pick_one, pick_subset
from adlabgen.generation.names import NameSynthesizer, is_usable_seed
from adlabgen.generation.passwords import generate_password
from adlabgen.lab.classifier import ClassifiedGroups, classify
from adlabgen.lab.config import LabConfig
from adlabgen.lab.export import write_credentials

logger = structlog.get_logger()


# =============================================================================
# RUN STATE
# =============================================================================


@attrs.define
class RunContext:
    """
    Mutable state of a single run, threaded through the stages.

    Nothing here outlives the run.
    """

    config: LabConfig
    target_dn: str
    machine: RunStateMachine = attrs.Factory(RunStateMachine)
    classified: Optional[ClassifiedGroups] = None
    identities: List[GeneratedIdentity] = attrs.Factory(list)
    credentials: List[Credential] = attrs.Factory(list)
    export_path: Optional[Path] = None

    groups_created: int = 0
    groups_skipped: int = 0
    role_memberships_added: int = 0
    role_memberships_failed: int = 0
    users_created: int = 0
    users_failed: int = 0
    user_memberships_added: int = 0
    user_memberships_failed: int = 0

    def advance(self, stage: RunStage, **data: Any) -> None:
        result = self.machine.advance(stage, **data)
        if isinstance(result, Failure):
            raise StateError(result.failure())

    @property
    def groups(self) -> ClassifiedGroups:
        if self.classified is None:
            raise StateError("Groups have not been classified")
        return self.classified


@attrs.define(frozen=True, slots=True)
class UserOutcome:
    """Result of provisioning one identity."""

    account_id: str
    credential: Optional[Credential] = None
    memberships_added: int = 0
    memberships_failed: int = 0

    @property
    def created(self) -> bool:
        return self.credential is not None


@attrs.define(frozen=True)
class RunReport:
    """
    Summary of a completed run.

    Credentials are only retained when they were exported.
    """

    mode: OperatingMode
    target_dn: str
    access_groups: Tuple[str, ...]
    role_groups: Tuple[str, ...]
    groups_created: int
    groups_skipped: int
    role_memberships_added: int
    role_memberships_failed: int
    users_requested: int
    users_created: int
    users_failed: int
    user_memberships_added: int
    user_memberships_failed: int
    credentials: Tuple[Credential, ...] = attrs.field(default=(), repr=False)
    export_path: Optional[Path] = None
    stages: Tuple[Transition, ...] = attrs.field(default=(), repr=False)

    @property
    def has_skipped_items(self) -> bool:
        return bool(
            self.users_failed
            or self.role_memberships_failed
            or self.user_memberships_failed
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable summary (no passwords)."""
        return {
            "mode": self.mode.name,
            "target_dn": self.target_dn,
            "access_groups": list(self.access_groups),
            "role_groups": list(self.role_groups),
            "groups": {"created": self.groups_created, "skipped": self.groups_skipped},
            "role_memberships": {
                "added": self.role_memberships_added,
                "failed": self.role_memberships_failed,
            },
            "users": {
                "requested": self.users_requested,
                "created": self.users_created,
                "failed": self.users_failed,
            },
            "user_memberships": {
                "added": self.user_memberships_added,
                "failed": self.user_memberships_failed,
            },
            "export_path": str(self.export_path) if self.export_path else None,
            "stages": [t.to_dict() for t in self.stages],
        }


# =============================================================================
# ORCHESTRATOR
# =============================================================================


@attrs.define
class LabOrchestrator:
    """
    Populates a directory with a randomized lab.

    Example:
        config = LabConfig(domain="lab.example.com", user_count=3)
        orchestrator = LabOrchestrator(config, InMemoryDirectory(domain="lab.example.com"))
        result = orchestrator.run(load_group_specs("groups.txt"),
                                  load_name_seeds("names.txt"))
        if isinstance(result, Success):
            print(result.unwrap().users_created)
    """

    config: LabConfig
    directory: DirectoryAdapter
    rng: random.Random = attrs.field(
        default=attrs.Factory(lambda self: random.Random(self.config.seed), takes_self=True),
    )
    password_factory: Callable[[int], str] = generate_password
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def run(
        self,
        groups: Sequence[GroupSpec],
        seeds: Sequence[NameSeed],
    ) -> Result[RunReport, LabGenError]:
        """
        Execute all stages.

        Returns:
            Success(RunReport) when the run completed (possibly with skipped
            items), Failure(LabGenError) when a fatal error aborted it
        """
        target_dn = self.config.target_dn or self.directory.default_container(self.config.domain)
        context = RunContext(config=self.config, target_dn=target_dn)

        self._logger.info(
            "lab_run_start",
            domain=self.config.domain,
            target_dn=target_dn,
            mode=self.config.mode.name,
            user_count=self.config.user_count,
            workers=self.config.workers,
        )

        try:
            self._validate(context, groups, seeds)
            self._provision_groups(context)
            self._wire_roles(context)
            self._generate_identities(context, seeds)
            self._provision_users(context)
            self._export(context)
        except LabGenError as e:
            self._logger.error(
                "lab_run_failed",
                stage=context.machine.stage.name,
                error=e.message,
                error_type=type(e).__name__,
            )
            if not isinstance(e, CredentialExportError):
                self._export_partial(context)
            if not context.machine.is_terminal:
                context.machine.advance(RunStage.FAILED, error=type(e).__name__)
            return Failure(e)

        report = self._build_report(context)
        self._logger.info(
            "lab_run_complete",
            groups_created=report.groups_created,
            groups_skipped=report.groups_skipped,
            users_created=report.users_created,
            users_failed=report.users_failed,
        )
        return Success(report)

    # =========================================================================
    # STAGES
    # =========================================================================

    def _validate(
        self,
        context: RunContext,
        groups: Sequence[GroupSpec],
        seeds: Sequence[NameSeed],
    ) -> None:
        """Stage 1: fail fast before any directory mutation."""
        context.classified = classify(groups, self.config.mode)
        if not seeds:
            raise EmptySeedPool()
        for seed in seeds:
            if not is_usable_seed(seed.first_name, seed.last_name):
                raise UnusableNameSeed(seed.first_name, seed.last_name)

        context.advance(
            RunStage.VALIDATED,
            access_groups=len(context.groups.access_groups),
            role_groups=len(context.groups.role_groups),
            seeds=len(seeds),
        )

    def _provision_groups(self, context: RunContext) -> None:
        """Stage 2: create each group unless it already sits at the target."""
        for name in context.groups.all_groups:
            expected_dn = child_dn(name, context.target_dn)
            existing = self.directory.query_object(
                "sAMAccountName", name, ObjectType.GROUP, self.config.domain
            )

            if existing is not None:
                if not existing.is_at(expected_dn):
                    raise GroupLocationConflict(name, expected_dn, existing.distinguished_name)
                self._logger.warning("group_exists_skipped", group=name, dn=expected_dn)
                context.groups_skipped += 1
                continue

            result = self.directory.create_group(
                name=name,
                description=self.config.group_description,
                parent_dn=context.target_dn,
                scope=GroupScope.GLOBAL,
                group_type=GroupType.SECURITY,
            )
            if isinstance(result, Failure):
                raise GroupProvisioningError(name, str(result.failure()))

            self._logger.info("group_created", group=name, dn=expected_dn)
            context.groups_created += 1

        context.advance(
            RunStage.GROUPS_PROVISIONED,
            created=context.groups_created,
            skipped=context.groups_skipped,
        )

    def _wire_roles(self, context: RunContext) -> None:
        """Stage 3: nest every role group into a random set of access groups."""
        if not self.config.mode.uses_roles:
            context.advance(RunStage.ROLES_WIRED, skipped=True)
            return

        access_groups = context.groups.access_groups
        for role in context.groups.role_groups:
            role_dn = child_dn(role, context.target_dn)
            for access in sorted(pick_subset(access_groups, self.rng)):
                if self._add_member(access, role_dn, context.target_dn, member=role):
                    context.role_memberships_added += 1
                else:
                    context.role_memberships_failed += 1

        context.advance(
            RunStage.ROLES_WIRED,
            added=context.role_memberships_added,
            failed=context.role_memberships_failed,
        )

    def _generate_identities(self, context: RunContext, seeds: Sequence[NameSeed]) -> None:
        """Stage 4."""
        synthesizer = NameSynthesizer(rng=self.rng)
        context.identities = synthesizer.generate(seeds, self.config.user_count)
        context.advance(RunStage.IDENTITIES_GENERATED, count=len(context.identities))

    def _provision_users(self, context: RunContext) -> None:
        """
        Stage 5: create and wire each identity independently.

        With more than one worker, identities are processed on a thread
        pool. Outcomes are recorded on the coordinating thread as they
        complete, so a fatal error mid-stage keeps every credential already
        issued. Credentials are put back in identity order afterwards.
        """
        target_dn = context.target_dn
        groups = context.groups

        def provision(identity: GeneratedIdentity) -> UserOutcome:
            return self._provision_user(identity, groups, target_dn)

        try:
            if self.config.workers > 1:
                self._provision_pooled(context, provision)
            else:
                for identity in context.identities:
                    self._record_outcome(context, provision(identity))
        finally:
            order = {identity.account_id: n for n, identity in enumerate(context.identities)}
            context.credentials.sort(key=lambda c: order[c.account_id])

        context.advance(
            RunStage.USERS_PROVISIONED,
            created=context.users_created,
            failed=context.users_failed,
        )

    def _provision_pooled(
        self,
        context: RunContext,
        provision: Callable[[GeneratedIdentity], UserOutcome],
    ) -> None:
        fatal: Optional[LabGenError] = None
        with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            futures = [pool.submit(provision, identity) for identity in context.identities]
            for future in as_completed(futures):
                if future.cancelled():
                    continue
                try:
                    self._record_outcome(context, future.result())
                except LabGenError as e:
                    if fatal is None:
                        fatal = e
                        # Drain in-flight work so its credentials are kept
                        for pending in futures:
                            pending.cancel()
        if fatal is not None:
            raise fatal

    @staticmethod
    def _record_outcome(context: RunContext, outcome: UserOutcome) -> None:
        if outcome.credential is None:
            context.users_failed += 1
            return
        context.users_created += 1
        context.credentials.append(outcome.credential)
        context.user_memberships_added += outcome.memberships_added
        context.user_memberships_failed += outcome.memberships_failed

    def _export(self, context: RunContext) -> None:
        """Stage 6: write or discard the collected credentials."""
        if self.config.export_passwords:
            context.export_path = write_credentials(
                context.credentials, self.config.resolve_export_path()
            )
        else:
            context.credentials.clear()

        context.advance(
            RunStage.EXPORTED,
            exported=self.config.export_passwords,
        )

    def _export_partial(self, context: RunContext) -> None:
        """
        Write the credentials of users created before a fatal error.

        Those accounts stay in the directory, so the artifact is the only
        record of their passwords. An export failure here is logged and the
        original error is kept.
        """
        if not context.credentials:
            return
        if not self.config.export_passwords:
            context.credentials.clear()
            return

        path = self.config.resolve_export_path()
        try:
            context.export_path = write_credentials(context.credentials, path)
        except CredentialExportError as e:
            self._logger.error("partial_export_failed", path=str(path), error=e.message)
            return
        self._logger.warning(
            "partial_credentials_exported",
            path=str(context.export_path),
            count=len(context.credentials),
        )

    # =========================================================================
    # PER-ITEM OPERATIONS
    # =========================================================================

    def _provision_user(
        self,
        identity: GeneratedIdentity,
        groups: ClassifiedGroups,
        target_dn: str,
    ) -> UserOutcome:
        password = self.password_factory(self.config.password_length)
        result = self.directory.create_user(
            name=identity.account_id,
            sam_account_name=identity.account_id,
            first_name=identity.first_name,
            last_name=identity.last_name,
            display_name=identity.display_name,
            description=self.config.user_description,
            parent_dn=target_dn,
            password=password,
            enabled=True,
            password_never_expires=True,
            user_principal_name=identity.user_principal_name(self.config.domain),
        )
        if isinstance(result, Failure):
            self._logger.warning(
                "user_create_failed",
                account_id=identity.account_id,
                error=str(result.failure()),
            )
            return UserOutcome(account_id=identity.account_id)

        self._logger.info("user_created", account_id=identity.account_id)

        mode = self.config.mode
        selected: List[str] = []
        if mode.uses_roles:
            selected.append(pick_one(groups.role_groups, self.rng))
        if mode.wires_users_to_access:
            selected.extend(sorted(pick_subset(groups.access_groups, self.rng)))

        user_dn = child_dn(identity.account_id, target_dn)
        added = failed = 0
        for group in selected:
            if self._add_member(group, user_dn, target_dn, member=identity.account_id):
                added += 1
            else:
                failed += 1

        return UserOutcome(
            account_id=identity.account_id,
            credential=Credential(account_id=identity.account_id, password=password),
            memberships_added=added,
            memberships_failed=failed,
        )

    def _add_member(self, group: str, member_dn: str, target_dn: str, member: str) -> bool:
        result = self.directory.modify_group_membership(
            child_dn(group, target_dn), member_dn, MembershipOp.ADD
        )
        if isinstance(result, Failure):
            self._logger.warning(
                "membership_add_failed",
                group=group,
                member=member,
                error=str(result.failure()),
            )
            return False

        self._logger.debug("membership_added", group=group, member=member)
        return True

    @staticmethod
    def _build_report(context: RunContext) -> RunReport:
        return RunReport(
            mode=context.config.mode,
            target_dn=context.target_dn,
            access_groups=context.groups.access_groups,
            role_groups=context.groups.role_groups,
            groups_created=context.groups_created,
            groups_skipped=context.groups_skipped,
            role_memberships_added=context.role_memberships_added,
            role_memberships_failed=context.role_memberships_failed,
            users_requested=len(context.identities),
            users_created=context.users_created,
            users_failed=context.users_failed,
            user_memberships_added=context.user_memberships_added,
            user_memberships_failed=context.user_memberships_failed,
            credentials=tuple(context.credentials),
            export_path=context.export_path,
            stages=tuple(context.machine.get_trace()),
        )


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================


def populate_lab(
    config: LabConfig,
    directory: DirectoryAdapter,
    groups: Sequence[GroupSpec],
    seeds: Sequence[NameSeed],
) -> Result[RunReport, LabGenError]:
    """
    Run a lab population in one call.

    Args:
        config: Run configuration
        directory: Target directory adapter
        groups: Loaded group specs
        seeds: Loaded name seeds
    """
    return LabOrchestrator(config=config, directory=directory).run(groups, seeds)
