"""
The built-in signing-fault scenario.

Three agents, one app each. Once agent-2 is denylisted, its sign requests
fail at the proxy, so deactivating happ-2 is expected to fail. happ-3 is
installed and activated for agent-3 after the fault, which shows that only
the denylisted agent is affected. Those steps stay marked as allowed to
fail so their real outcome is recorded either way, and happ-1 must stay
active throughout.
"""

from faultline.scenario.specs.scenario_spec import ScenarioSpec

MEMBRANE_PROOFS = {"test": "rGpvaW5pbmcgY29kZQ=="}


def _install(app_id: str, agent: str, **extra) -> dict:
    return {
        "type": "install_app",
        "name": f"install {app_id}",
        "params": {
            "app_id": app_id,
            "agent": agent,
            "membrane_proofs": MEMBRANE_PROOFS,
        },
        **extra,
    }


def _activate(app_id: str, **extra) -> dict:
    return {
        "type": "activate_app",
        "name": f"activate {app_id}",
        "params": {"app_id": app_id},
        **extra,
    }


def signing_fault_scenario() -> ScenarioSpec:
    return ScenarioSpec.from_dict(
        {
            "name": "signing-fault",
            "description": "Conductor behaviour when one agent can no longer sign",
            "actions": [
                {"type": "prepare_workspace"},
                {"type": "start_keystore"},
                {"type": "start_proxy"},
                {"type": "start_conductor"},
                {
                    "type": "generate_agents",
                    "params": {"names": ["agent-1", "agent-2", "agent-3"]},
                },
                _install("happ-1", "agent-1"),
                _activate("happ-1"),
                _install("happ-2", "agent-2"),
                _activate("happ-2"),
                {
                    "type": "inject_fault",
                    "name": "denylist agent-2",
                    "params": {"agent": "agent-2"},
                },
                {
                    "type": "deactivate_app",
                    "name": "deactivate happ-2",
                    "params": {"app_id": "happ-2"},
                    "expect_failure": True,
                },
                {"type": "list_apps", "name": "list apps after deactivate"},
                _install("happ-3", "agent-3", expect_failure=True),
                _activate("happ-3", expect_failure=True),
                {"type": "list_apps", "name": "list apps after install"},
                {
                    "type": "assert_app_status",
                    "name": "happ-1 still active",
                    "params": {"app_id": "happ-1", "status": "active"},
                },
            ],
        }
    )
