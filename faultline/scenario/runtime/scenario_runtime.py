import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from faultline.conductor import AdminClient, InstalledApp
from faultline.env import Env
from faultline.errors import TeardownFailure
from faultline.keystore import AgentIdentity
from faultline.logging import Logger
from faultline.logging.faultline_logging_models import (
    ScenarioDebug,
    ScenarioError,
)
from faultline.process import ManagedProcess
from faultline.proxy import Denylist, SigningProxy
from faultline.scenario.results.action_outcome import ActionOutcome
from faultline.scenario.runtime.workspace_layout import WorkspaceLayout
from faultline.scenario.specs.scenario_spec import ScenarioSpec


@dataclass(slots=True)
class ScenarioRuntime:
    spec: ScenarioSpec
    env: Env
    layout: WorkspaceLayout
    timeouts: dict[str, float]
    denylist: Denylist = field(default_factory=Denylist)
    logger: Logger = field(default_factory=Logger)
    keystore: ManagedProcess | None = None
    conductor: ManagedProcess | None = None
    proxy: SigningProxy | None = None
    admin: AdminClient | None = None
    agents: dict[str, AgentIdentity] = field(default_factory=dict)
    listings: list[list[InstalledApp]] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)

    @classmethod
    def create(cls, spec: ScenarioSpec, env: Env) -> "ScenarioRuntime":
        return cls(
            spec=spec,
            env=env,
            layout=WorkspaceLayout.from_env(env),
            timeouts=env.get_timeouts(),
        )

    def require_admin(self) -> AdminClient:
        if not self.admin:
            raise RuntimeError("Conductor admin session not open")
        return self.admin

    def require_agent(self, name: str) -> AgentIdentity:
        if name not in self.agents:
            raise ValueError(f"Unknown agent '{name}'")
        return self.agents[name]

    async def teardown(self) -> list[ActionOutcome]:
        """
        Stop everything that was started, newest dependency first.

        Every step runs even when an earlier one failed. Failures are
        logged and recorded, never raised.
        """
        steps: list[tuple[str, Callable[[], Awaitable[None]]]] = [
            ("admin session", self._close_admin),
            ("signing proxy", self._stop_proxy),
            ("conductor", self._stop_conductor),
            ("keystore", self._stop_keystore),
        ]

        outcomes: list[ActionOutcome] = []
        for component, stop in steps:
            start = time.monotonic()
            step_name = f"stop {component}"

            try:
                await stop()
                outcomes.append(
                    ActionOutcome(
                        name=step_name,
                        succeeded=True,
                        duration_seconds=time.monotonic() - start,
                    )
                )

            except Exception as err:
                failure = TeardownFailure(component, err)

                await self.logger.log(
                    ScenarioError(
                        message=str(failure),
                        scenario=self.spec.name,
                        step=step_name,
                    )
                )

                outcomes.append(
                    ActionOutcome(
                        name=step_name,
                        succeeded=False,
                        duration_seconds=time.monotonic() - start,
                        details=str(failure),
                        error_type=type(err).__name__,
                    )
                )

        return outcomes

    async def settle(self):
        settle_period = self.timeouts["teardown_settle_period"]
        if settle_period <= 0:
            return

        await self.logger.log(
            ScenarioDebug(
                message=f"Waiting {settle_period}s before teardown",
                scenario=self.spec.name,
                step="teardown",
            )
        )

        await asyncio.sleep(settle_period)

    async def _close_admin(self):
        admin, self.admin = self.admin, None
        if admin:
            await admin.close()

    async def _stop_proxy(self):
        proxy, self.proxy = self.proxy, None
        if proxy:
            await proxy.stop()

    async def _stop_conductor(self):
        conductor, self.conductor = self.conductor, None
        if conductor:
            await conductor.terminate()

    async def _stop_keystore(self):
        keystore, self.keystore = self.keystore, None
        if keystore:
            await keystore.terminate()
