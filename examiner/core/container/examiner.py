from __future__ import annotations

import os
import sys
import tempfile
import types
import typing as t
from pathlib import Path

import pydantic as p
import xdg_base_dirs as xdg
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Object, Provider, Resource, Singleton

import examiner
from examiner.model import BaseModel, DeploymentEnvironment

from ..config import ExamSettings, Secrets, Settings
from ..di import NotReady, register_loader_containers
from ..provider import LoggingProvider, TimestampProvider, utcnow
from .auth import AuthContainer
from .storage import StorageContainer


def provide_xdg_runtime() -> t.Generator[Path]:
    rtp = xdg.xdg_runtime_dir()
    if rtp:
        yield rtp
    else:
        rtp = Path(tempfile.mkdtemp())
        yield rtp
        os.rmdir(rtp)


def provide_xdg_state() -> Path:
    stp = xdg.xdg_state_home() / "examiner"
    stp.mkdir(parents=True, exist_ok=True)
    return stp


class BootConfiguration(BaseModel):
    debug: bool
    env: DeploymentEnvironment
    config_root: p.FileUrl
    override: tuple[str, ...]


class ExaminerContainer(DeclarativeContainer):
    config: Configuration = Configuration()
    secrets: Configuration = Configuration()

    debug: Provider[bool] = Singleton(bool)
    env: Provider[DeploymentEnvironment] = Singleton(DeploymentEnvironment)
    root: Object[NotReady | Path] = Object(NotReady())
    runtime_path: Provider[Path] = Resource(provide_xdg_runtime)
    state_path: Provider[Path] = Resource(provide_xdg_state)

    logging: Provider[LoggingProvider] = Resource(LoggingProvider, config=config.logging, debug=debug)
    storage: Provider[StorageContainer] = Container(
        StorageContainer, config=config.storage, secrets=secrets, debug=debug, logging=logging, root=root
    )

    utcnow: Provider[TimestampProvider] = Object(utcnow)
    exam: Provider[ExamSettings] = Singleton(ExamSettings.model_validate, config.exam)

    auth: Provider[AuthContainer] = Container(
        AuthContainer,
        config=config.web.examiner.auth,
        secrets=secrets.auth,
        session=storage.provided.persistent.session,
        utcnow=utcnow,
    )

    _boot_config: Provider[BootConfiguration | NotReady] = Object(NotReady())

    @staticmethod
    def boot(
        ct: ExaminerContainer,
        /,
        debug: bool,
        env: DeploymentEnvironment,
        config_root: p.FileUrl,
        override: tuple[str, ...] | None = None,
        wiring: tuple[str | types.ModuleType, ...] | None = None,
    ):
        if config_root.scheme != "file":
            raise ValueError(f"unsupported scheme for config root: {config_root.scheme}")
        ps = Settings(env=env, root=config_root, override=override or ())
        ct.config.from_pydantic(ps)

        ct.debug.override(debug)
        ct.env.override(env)
        ct.root.override(Path(os.path.dirname(examiner.__file__)).parent)

        ct.secrets.from_pydantic(Secrets(env=env, root=config_root))

        ct.wire(packages=["examiner.exam", "examiner.storage", "examiner.auth"])
        if wiring:
            ct.wire(modules=wiring)
        if imported := [mod for name, mod in sys.modules.items() if name.startswith("examiner.")]:
            ct.wire(modules=imported)
        register_loader_containers(ct, packages=["examiner"])

        logger = ct.logging().get_logger()
        for ov in ps.override:
            k, v = ov.split("=", 1)
            logger.info(
                "overriding configuration parameter",
                extra={
                    "key": k,
                    "value": v,
                },
            )
        if debug:
            ct.logging().capture_warnings(True)

        logger.debug(
            "configuration finished",
            extra={
                "config": str(config_root),
                "env": env,
            },
        )
        ct._boot_config.override(BootConfiguration(debug=debug, env=env, config_root=config_root, override=ps.override))
