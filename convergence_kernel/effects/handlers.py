"""Effect handlers — apply resolved deferred effects on the host."""

import logging
import math

from convergence_kernel.models.command import Command
from convergence_kernel.models.config import Platform
from convergence_kernel.models.effects import DeferredEffect
from convergence_kernel.runner.base import CommandRunner

logger = logging.getLogger(__name__)


class RebootHandler:
    """Requests a host reboot through the command runner."""

    def __init__(self, runner: CommandRunner, platform: Platform = Platform.LINUX, delay_seconds: int = 0):
        self.runner = runner
        self.platform = Platform(platform)
        self.delay_seconds = delay_seconds

    def build_command(self, effect: DeferredEffect) -> Command:
        reason = effect.reason or "Reboot requested by convergence"
        if self.platform == Platform.WINDOWS:
            return Command(argv=["shutdown", "/r", "/t", str(self.delay_seconds), "/c", reason])
        # shutdown(8) on Linux takes whole minutes.
        minutes = math.ceil(self.delay_seconds / 60)
        return Command(argv=["shutdown", "-r", f"+{minutes}", reason])

    def __call__(self, effect: DeferredEffect) -> None:
        logger.info(
            "Rebooting host",
            extra={"reason": effect.reason, "requested_by": effect.requested_by, "delay_seconds": self.delay_seconds},
        )
        self.runner.run_or_fail(self.build_command(effect))
