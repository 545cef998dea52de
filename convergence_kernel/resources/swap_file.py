"""
swap_file — create or remove a Linux swap file.

`create` converges when the file is an active swap area; `persist` and
`swappiness` are converged independently, so an active swap file that lost
its fstab entry only gets the entry back. `remove` undoes each part that is
still present.

Paths must be absolute and are compared in normalised form, the way
`swapon --show` reports them.
"""

import posixpath
from typing import List, Optional

from convergence_kernel.errors import ProbeError
from convergence_kernel.models.command import Command
from convergence_kernel.models.plan import Step
from convergence_kernel.models.resource import ObservedState, ResourceModel
from convergence_kernel.models.schema import PropertyType
from convergence_kernel.planning.steps import run_command
from convergence_kernel.probe.base import observed, query
from convergence_kernel.resources.registry import ResourceType
from convergence_kernel.runner.base import CommandRunner
from convergence_kernel.schema.properties import ResourceSchema, define

KIND = "swap_file"

FSTAB = "/etc/fstab"

# Filesystems that cannot host a fallocate'd swap file.
NO_FALLOCATE_FILESYSTEMS = ("btrfs", "xfs")

SCHEMA = ResourceSchema(
    kind=KIND,
    properties=[
        define(
            "path",
            regex=r"^/",
            validation_message="The swap file path must be absolute.",
            description="The path where the swap file will be created on the system.",
            name_property=True,
        ),
        define(
            "size",
            PropertyType.INTEGER,
            minimum=1,
            description="The size (in MBs) of the swap file.",
            required_for=["create"],
        ),
        define(
            "persist",
            PropertyType.BOOL,
            default=False,
            description="Persist the swapon across reboots through an fstab entry.",
        ),
        define(
            "swappiness",
            PropertyType.INTEGER,
            minimum=0,
            maximum=200,
            description="The swappiness value to set on the system.",
        ),
        define(
            "allocator",
            PropertyType.ENUM,
            equal_to=["auto", "fallocate", "dd"],
            default="auto",
            description="How the file is allocated; auto picks dd where fallocate is unsupported.",
        ),
    ],
    actions=["create", "remove"],
    default_action="create",
)


# --- Probe ---

def _sh(script: str, *args: str) -> Command:
    """`sh -c` with values passed as positional parameters, never spliced in."""
    return Command(argv=["sh", "-c", script, "sh", *args])


def swap_path(model: ResourceModel) -> str:
    """The path as swapon and fstab list it: `/var//swap/./file` -> `/var/swap/file`."""
    return posixpath.normpath(model.get("path"))


def parse_active_swaps(output: str) -> List[str]:
    return [posixpath.normpath(line.strip()) for line in output.splitlines() if line.strip()]


def parse_fstab_entries(content: str) -> List[str]:
    """First field of every non-comment fstab line."""
    entries = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        entries.append(posixpath.normpath(line.split()[0]))
    return entries


def probe(model: ResourceModel, runner: CommandRunner) -> ObservedState:
    path = swap_path(model)

    swaps = query(
        runner,
        Command(argv=["swapon", "--noheadings", "--raw", "--show=NAME"]),
        "list active swap areas",
    )
    active = path in parse_active_swaps(swaps.stdout)

    presence = query(
        runner,
        _sh('if [ -e "$1" ]; then echo present; else echo absent; fi', path),
        f"check whether {path} exists",
    )
    file_exists = presence.stdout.strip() == "present"

    persisted = None
    if model.action == "remove" or model.get("persist"):
        fstab = query(runner, Command(argv=["cat", FSTAB]), f"read {FSTAB}")
        persisted = path in parse_fstab_entries(fstab.stdout)

    swappiness = None
    if model.is_bound("swappiness"):
        current = query(runner, Command(argv=["sysctl", "-n", "vm.swappiness"]), "read vm.swappiness")
        try:
            swappiness = int(current.stdout.strip())
        except ValueError as exc:
            raise ProbeError(f"Unexpected vm.swappiness value: {current.stdout.strip()!r}") from exc

    filesystem = None
    if model.action == "create" and not active and model.get("allocator") == "auto":
        fs = query(
            runner,
            _sh(
                'd=$(dirname "$1"); while [ ! -d "$d" ]; do d=$(dirname "$d"); done; '
                'stat -f --format=%T "$d"',
                path,
            ),
            f"detect the filesystem holding {path}",
        )
        filesystem = fs.stdout.strip()

    return observed(
        model,
        active=active,
        file_exists=file_exists,
        persisted=persisted,
        swappiness=swappiness,
        filesystem=filesystem,
    )


# --- Planners ---

def choose_allocator(model: ResourceModel, filesystem: Optional[str]) -> str:
    allocator = model.get("allocator")
    if allocator != "auto":
        return allocator
    return "dd" if filesystem in NO_FALLOCATE_FILESYSTEMS else "fallocate"


def allocation_command(model: ResourceModel, allocator: str) -> Command:
    path, size = swap_path(model), model.get("size")
    if allocator == "dd":
        return Command(argv=["dd", "if=/dev/zero", f"of={path}", "bs=1M", f"count={size}"])
    return Command(argv=["fallocate", "-l", f"{size}M", path])


def plan_create(model: ResourceModel, state: ObservedState) -> List[Step]:
    path = swap_path(model)
    steps: List[Step] = []

    if not state.fact("active"):
        parent = posixpath.dirname(path)
        if parent and parent != "/":
            steps.append(run_command(model, Command(argv=["mkdir", "-p", parent]), f"create directory {parent}"))
        allocator = choose_allocator(model, state.fact("filesystem"))
        steps.extend([
            run_command(model, allocation_command(model, allocator), f"allocate {model.get('size')}MB at {path}"),
            run_command(model, Command(argv=["chmod", "600", path]), f"restrict permissions of {path}"),
            run_command(model, Command(argv=["mkswap", path]), f"format {path} as swap"),
            run_command(model, Command(argv=["swapon", path]), f"enable swap file {path}"),
        ])

    if model.get("persist") and not state.fact("persisted"):
        steps.append(run_command(
            model,
            _sh(f'printf "%s none swap defaults 0 0\\n" "$1" >> {FSTAB}', path),
            f"persist swap file {path} in {FSTAB}",
        ))

    swappiness = model.get("swappiness")
    if swappiness is not None and state.fact("swappiness") != swappiness:
        steps.append(run_command(
            model,
            Command(argv=["sysctl", "-w", f"vm.swappiness={swappiness}"]),
            f"set vm.swappiness to {swappiness}",
        ))

    return steps


def plan_remove(model: ResourceModel, state: ObservedState) -> List[Step]:
    path = swap_path(model)
    steps: List[Step] = []

    if state.fact("active"):
        steps.append(run_command(model, Command(argv=["swapoff", path]), f"disable swap file {path}"))
    if state.fact("file_exists"):
        steps.append(run_command(model, Command(argv=["rm", "-f", path]), f"remove swap file {path}"))
    if state.fact("persisted"):
        steps.append(run_command(
            model,
            _sh(
                f"awk -v p=\"$1\" '$1 != p' {FSTAB} > {FSTAB}.converge && "
                f"cat {FSTAB}.converge > {FSTAB} && rm -f {FSTAB}.converge",
                path,
            ),
            f"remove {path} from {FSTAB}",
        ))
    return steps


RESOURCE_TYPE = ResourceType(
    schema=SCHEMA,
    probe=probe,
    planners={"create": plan_create, "remove": plan_remove},
    description="Use the swap_file resource to create or delete swap files on Linux systems.",
)
