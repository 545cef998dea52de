"""
windows_ad_join — join a Windows host to an Active Directory domain.

The host counts as joined when the WMI-reported domain equals `domain_name`,
compared case-insensitively after trimming. A successful join requests a
reboot according to the `reboot` property.
"""

from typing import List

from convergence_kernel.models.effects import EffectKind
from convergence_kernel.models.plan import Step
from convergence_kernel.models.resource import ObservedState, ResourceModel
from convergence_kernel.models.schema import PropertyType
from convergence_kernel.planning.steps import request_effect, run_command
from convergence_kernel.probe.base import observed, query
from convergence_kernel.resources.registry import ResourceType
from convergence_kernel.runner.base import CommandRunner
from convergence_kernel.runner.powershell import powershell_command, ps_env, ps_quote
from convergence_kernel.schema.properties import ResourceSchema, define

KIND = "windows_ad_join"

# The password reaches PowerShell through the child environment, never argv.
PASSWORD_ENV = "CONVERGE_DOMAIN_PASSWORD"

DOMAIN_QUERY = "(Get-WmiObject Win32_ComputerSystem).Domain"

SCHEMA = ResourceSchema(
    kind=KIND,
    properties=[
        define(
            "domain_name",
            description="The FQDN of the AD domain to join.",
            regex=r".\..",
            validation_message="The 'domain_name' property must be a FQDN.",
            name_property=True,
        ),
        define(
            "domain_user",
            description="The domain user to use to join the host to the domain.",
            required=True,
        ),
        define(
            "domain_password",
            description="The password for the domain user.",
            required=True,
            sensitive=True,
        ),
        define(
            "ou_path",
            description="The path to the OU where you would like to place the host.",
        ),
        define(
            "reboot",
            PropertyType.ENUM,
            equal_to=["immediate", "delayed", "never"],
            default="immediate",
            validation_message=(
                "The reboot property accepts :immediate (reboot as soon as the resource completes), "
                ":delayed (reboot once the run completes), and :never (Don't reboot)"
            ),
            description="Controls the system reboot behavior post domain joining.",
        ),
        define(
            "sensitive",
            PropertyType.BOOL,
            default=True,
            description="Suppress the join command from errors and logs.",
        ),
    ],
    actions=["join"],
)


def normalize_domain(value: str) -> str:
    return value.strip().lower()


def probe(model: ResourceModel, runner: CommandRunner) -> ObservedState:
    domain_name = model.get("domain_name")
    result = query(
        runner,
        powershell_command(DOMAIN_QUERY),
        f"check if the system is joined to the domain {domain_name}",
    )
    current = normalize_domain(result.stdout)
    return observed(
        model,
        current_domain=current,
        joined=current == normalize_domain(domain_name),
    )


def build_join_script(model: ResourceModel) -> str:
    script = (
        f"$pswd = ConvertTo-SecureString {ps_env(PASSWORD_ENV)} -AsPlainText -Force;"
        f"$credential = New-Object System.Management.Automation.PSCredential "
        f"({ps_quote(model.get('domain_user'))},$pswd);"
        f"Add-Computer -DomainName {ps_quote(model.get('domain_name'))} -Credential $credential"
    )
    if model.is_bound("ou_path"):
        script += f" -OUPath {ps_quote(model.get('ou_path'))}"
    script += " -Force"
    return script


def plan_join(model: ResourceModel, state: ObservedState) -> List[Step]:
    if state.fact("joined"):
        return []

    domain_name = model.get("domain_name")
    command = powershell_command(
        build_join_script(model),
        env={PASSWORD_ENV: model.get("domain_password")},
    )
    steps: List[Step] = [
        run_command(
            model,
            command,
            f"join Active Directory domain {domain_name}",
            sensitive=model.get("sensitive", True),
        )
    ]
    steps.extend(
        request_effect(
            model,
            EffectKind.REBOOT,
            model.get("reboot"),
            f"Reboot to join domain {domain_name}",
        )
    )
    return steps


RESOURCE_TYPE = ResourceType(
    schema=SCHEMA,
    probe=probe,
    planners={"join": plan_join},
    description="Use the windows_ad_join resource to join a Windows Active Directory domain.",
)
