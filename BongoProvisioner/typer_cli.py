#!/usr/bin/env python
"""
Typer front-end for the Bongo provisioner.
"""

from __future__ import annotations

import dataclasses
import os
from contextlib import contextmanager
from pathlib import Path

import typer
import yaml
from dotenv import load_dotenv

from BongoProvisioner import setup_logging
from BongoProvisioner.provisioning import (
    BongoError,
    get_config_viewed,
    set_config_viewed,
    set_up_integration,
    unregister_integration,
)
from lti_registration import __version__
from lti_registration.backends import YamlConfigStore, YamlHost
from lti_registration.classes import LocalConfig, RegistrationRequest, RegistrationResult, available_regions
from lti_registration.registration_client import register

DEFAULT_CONFIG_PATH = str(Path.home() / ".bongo" / "config.yaml")
DEFAULT_STATE_PATH = str(Path.home() / ".bongo" / "host.yaml")

app = typer.Typer(
    add_completion=True,
    no_args_is_help=True,
    help="Provision the Bongo LTI integration.",
)


def _version_callback(value: bool) -> None:
    if not value:
        return
    typer.echo(f"bongo {__version__}")
    raise typer.Exit()


@app.callback()
def _app_callback(
    version: bool = typer.Option(
        False,
        "--version",
        is_eager=True,
        callback=_version_callback,
        help="Show version and exit.",
    ),
) -> None:
    del version


@contextmanager
def _bongo_error_boundary():
    try:
        yield
    except BongoError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


def _configure_runtime(*, env: str, debug: bool) -> None:
    load_dotenv(env)
    # Reconfigure so LOG_LEVEL / BONGO_LOG_FILE from the .env file apply
    setup_logging(level="DEBUG" if debug else None)


def _resolve_config_path(config_path: str | None) -> str:
    return config_path or os.environ.get("BONGO_CONFIG_PATH") or DEFAULT_CONFIG_PATH


def _open_config_store(config_path: str | None) -> YamlConfigStore:
    path = _resolve_config_path(config_path)
    try:
        return YamlConfigStore(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise BongoError(f"Could not read plugin config '{path}': {e}") from e


def _open_host(state_path: str) -> YamlHost:
    try:
        return YamlHost(state_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise BongoError(f"Could not read host state '{state_path}': {e}") from e


def _load_local_config(config_store: YamlConfigStore, *, endpoint: str | None = None) -> LocalConfig:
    try:
        return LocalConfig.from_store(config_store, endpoint=endpoint)
    except ValueError as e:
        raise BongoError(f"Invalid plugin config '{config_store.path}': {e}") from e


def _build_request(
    *,
    name: str,
    access_code: str,
    email: str,
    region: str,
    config: LocalConfig,
    course_id: str | None = None,
) -> RegistrationRequest:
    try:
        return RegistrationRequest.from_config(
            name=name,
            access_code=access_code,
            customer_email=email,
            region=region,
            course_id=course_id,
            config=config,
        )
    except ValueError as e:
        raise BongoError(str(e)) from e


def _echo_result(result: RegistrationResult) -> None:
    if result.error_exists:
        raise BongoError(result.error_message or "Registration failed.")
    typer.echo(f"Connector URL: {result.connector_url}")
    typer.echo(f"Connector key: {result.connector_key}")
    if result.region:
        typer.echo(f"Region: {result.region}")


@app.command("regions")
def regions_command() -> None:
    """List the regions Bongo can be deployed in."""
    for option in available_regions():
        marker = " (default)" if option.is_default else ""
        typer.echo(f"{option.value}\t{option.translated_name}{marker}")


@app.command("register")
def register_command(
    name: str = typer.Option(..., "--name", help="Institution name."),
    access_code: str = typer.Option(..., "--access-code", help="Bongo access code."),
    email: str = typer.Option(..., "--email", help="Customer contact email."),
    region: str = typer.Option("NA", "--region", help="Region: NA|SA|CA|EU|AU."),
    course_id: str | None = typer.Option(None, "--course-id", help="Course id to link."),
    endpoint: str | None = typer.Option(None, "--endpoint", help="Override the registration URL."),
    env: str = typer.Option(str(Path.home() / ".env"), "--env", help="Path to .env file."),
    debug: bool = typer.Option(False, "--debug", help="Set logging level to debug."),
) -> None:
    """Register with Bongo only, without touching any course."""
    with _bongo_error_boundary():
        _configure_runtime(env=env, debug=debug)
        config = LocalConfig.from_env()
        if endpoint:
            config = dataclasses.replace(config, endpoint=endpoint)
        request = _build_request(
            name=name,
            access_code=access_code,
            email=email,
            region=region,
            course_id=course_id,
            config=config,
        )
        _echo_result(register(request, config))


@app.command("setup")
def setup_command(
    name: str = typer.Option(..., "--name", help="Institution name."),
    access_code: str = typer.Option(..., "--access-code", help="Bongo access code."),
    email: str = typer.Option(..., "--email", help="Customer contact email."),
    region: str = typer.Option("NA", "--region", help="Region: NA|SA|CA|EU|AU."),
    config_path: str | None = typer.Option(None, "--config", help="Plugin config YAML file."),
    state_path: str = typer.Option(DEFAULT_STATE_PATH, "--state", help="Host state YAML file."),
    endpoint: str | None = typer.Option(None, "--endpoint", help="Override the registration URL."),
    env: str = typer.Option(str(Path.home() / ".env"), "--env", help="Path to .env file."),
    debug: bool = typer.Option(False, "--debug", help="Set logging level to debug."),
) -> None:
    """Create the example course, register with Bongo and add the Bongo activity."""
    with _bongo_error_boundary():
        _configure_runtime(env=env, debug=debug)
        config_store = _open_config_store(config_path)
        host = _open_host(state_path)
        config = _load_local_config(config_store, endpoint=endpoint)
        request = _build_request(
            name=name,
            access_code=access_code,
            email=email,
            region=region,
            config=config,
        )
        outcome = set_up_integration(
            request,
            host=host,
            config_store=config_store,
            site=config.site,
            endpoint=endpoint,
        )
        # Partial state is kept even when registration fails
        host.save()
        set_config_viewed(config_store)
        _echo_result(outcome.result)
        typer.echo(f"Course: {outcome.course_id}")
        typer.echo(f"LTI type: {outcome.lti_type_id}")
        typer.echo(f"Activity: {outcome.module_id}")


@app.command("unregister")
def unregister_command(
    config_path: str | None = typer.Option(None, "--config", help="Plugin config YAML file."),
    endpoint: str | None = typer.Option(None, "--endpoint", help="Override the registration URL."),
    env: str = typer.Option(str(Path.home() / ".env"), "--env", help="Path to .env file."),
    debug: bool = typer.Option(False, "--debug", help="Set logging level to debug."),
) -> None:
    """Tell Bongo this installation is going away."""
    with _bongo_error_boundary():
        _configure_runtime(env=env, debug=debug)
        config_store = _open_config_store(config_path)
        try:
            unregister_integration(config_store, endpoint=endpoint)
        except ValueError as e:
            raise BongoError(f"Invalid plugin config '{config_store.path}': {e}") from e
        typer.echo("Unregister finished.")


@app.command("status")
def status_command(
    config_path: str | None = typer.Option(None, "--config", help="Plugin config YAML file."),
    env: str = typer.Option(str(Path.home() / ".env"), "--env", help="Path to .env file."),
    debug: bool = typer.Option(False, "--debug", help="Set logging level to debug."),
) -> None:
    """Show the saved plugin configuration."""
    with _bongo_error_boundary():
        _configure_runtime(env=env, debug=debug)
        config_store = _open_config_store(config_path)
        config = _load_local_config(config_store)
        typer.echo(f"Name: {config.name or '-'}")
        typer.echo(f"Region: {config.region or '-'}")
        typer.echo(f"Registered: {'yes' if config.key else 'no'}")
        typer.echo(f"LTI type: {config.lti_type_id or '-'}")
        typer.echo(f"Course: {config.course_id or '-'}")
        typer.echo(f"Config viewed: {'yes' if get_config_viewed(config_store) else 'no'}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
