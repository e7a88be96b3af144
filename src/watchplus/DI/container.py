# -*- coding: utf-8 -*-
"""Dependency injection container (dependency-injector)."""

from __future__ import annotations

from dependency_injector import containers, providers

from watchplus.clients.resend_client import ResendClient
from watchplus.config import Settings, WatchOptions, get_settings
from watchplus.models.loop_state import LoopState
from watchplus.notifications.change_notifier import ChangeNotifier
from watchplus.notifications.stylers import EmailStyler
from watchplus.services.command import CommandRunner
from watchplus.services.watch import (
    KeyboardListener,
    LoopSignals,
    PollLoopController,
    ScreenRenderer,
    TerminalSession,
    WatchRunner,
)


def _build_email_transport(options: WatchOptions, settings: Settings) -> ResendClient | None:
    """Resend client when email is fully configured, otherwise None."""
    if not options.email_enabled or options.resend_api_key is None:
        return None
    return ResendClient(
        options.resend_api_key,
        base_url=settings.email.api_base_url,
        timeout_seconds=settings.email.timeout_seconds,
    )


def _build_change_notifier(
    transport: ResendClient | None,
    styler: EmailStyler,
    settings: Settings,
) -> ChangeNotifier | None:
    if transport is None:
        return None
    return ChangeNotifier(
        transport=transport,
        styler=styler,
        coalesce_on_send=settings.email.coalesce_on_send,
    )


class Container(containers.DeclarativeContainer):
    """Application container. Wires settings, options, transport, notifier and the watch loop.

    Build with Container(options=providers.Object(options)); config defaults
    to get_settings() and can be overridden the same way.
    """

    config = providers.Callable(get_settings)

    options = providers.Dependency(instance_of=WatchOptions)

    email_styler = providers.Singleton(EmailStyler)

    email_transport = providers.Singleton(_build_email_transport, options, config)

    change_notifier = providers.Singleton(
        _build_change_notifier,
        email_transport,
        email_styler,
        config,
    )

    command_runner = providers.Singleton(CommandRunner)

    loop_signals = providers.Singleton(LoopSignals)

    loop_state = providers.Singleton(LoopState)

    screen_renderer = providers.Singleton(ScreenRenderer, options=options)

    poll_loop = providers.Singleton(
        PollLoopController,
        options=options,
        runner=command_runner,
        renderer=screen_renderer,
        signals=loop_signals,
        notifier=change_notifier,
        state=loop_state,
        sleep_slice_ms=config.provided.watch.sleep_slice_ms,
    )

    terminal_session = providers.Singleton(TerminalSession)

    keyboard_listener = providers.Singleton(KeyboardListener, signals=loop_signals)

    watch_runner = providers.Singleton(
        WatchRunner,
        controller=poll_loop,
        terminal=terminal_session,
        keyboard=keyboard_listener,
        signals=loop_signals,
        transport=email_transport,
        drain_seconds=config.provided.watch.shutdown_drain_seconds,
    )
