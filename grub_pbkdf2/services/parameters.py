from __future__ import annotations

from grub_pbkdf2.core.settings import Settings
from grub_pbkdf2.schemas import DerivationParameters


def resolve_parameters(
    settings: Settings,
    *,
    iteration_count: int | None = None,
    buflen: int | None = None,
    saltlen: int | None = None,
) -> DerivationParameters:
    """命令行参数优先，其次配置/环境变量；非正数抛 ValidationError。"""
    return DerivationParameters(
        iteration_count=settings.iteration_count if iteration_count is None else iteration_count,
        buflen=settings.buflen if buflen is None else buflen,
        saltlen=settings.saltlen if saltlen is None else saltlen,
    )
