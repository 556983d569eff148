from faultline.scenario.actions.action_registry import ActionRegistry
from faultline.scenario.actions.activate_app import run as activate_app
from faultline.scenario.actions.assert_app_status import run as assert_app_status
from faultline.scenario.actions.clear_fault import run as clear_fault
from faultline.scenario.actions.deactivate_app import run as deactivate_app
from faultline.scenario.actions.generate_agents import run as generate_agents
from faultline.scenario.actions.inject_fault import run as inject_fault
from faultline.scenario.actions.install_app import run as install_app
from faultline.scenario.actions.list_apps import run as list_apps
from faultline.scenario.actions.prepare_workspace import run as prepare_workspace
from faultline.scenario.actions.sleep_action import run as sleep_action
from faultline.scenario.actions.start_conductor import run as start_conductor
from faultline.scenario.actions.start_keystore import run as start_keystore
from faultline.scenario.actions.start_proxy import run as start_proxy


def build_default_registry() -> ActionRegistry:
    registry = ActionRegistry()
    registry.register("prepare_workspace", prepare_workspace)
    registry.register("start_keystore", start_keystore)
    registry.register("start_proxy", start_proxy)
    registry.register("start_conductor", start_conductor)
    registry.register("generate_agents", generate_agents)
    registry.register("install_app", install_app)
    registry.register("activate_app", activate_app)
    registry.register("deactivate_app", deactivate_app)
    registry.register("inject_fault", inject_fault)
    registry.register("clear_fault", clear_fault)
    registry.register("list_apps", list_apps)
    registry.register("assert_app_status", assert_app_status)
    registry.register("sleep", sleep_action)
    return registry
