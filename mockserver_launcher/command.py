from __future__ import annotations

from pathlib import Path

from mockserver_launcher.config import LaunchOptions


def _log_level_flag(options: LaunchOptions) -> str:
    if options.trace:
        return "-Dmockserver.logLevel=TRACE"
    if options.verbose:
        return "-Dmockserver.logLevel=INFO"
    return "-Dmockserver.logLevel=WARN"


def _system_properties(options: LaunchOptions) -> list[str]:
    props = options.system_properties
    if not props:
        return []
    if isinstance(props, str):
        return props.split()
    return list(props)


def build_command(options: LaunchOptions, jar: Path, java: str = "java") -> list[str]:
    """Assemble the `java -jar mockserver-netty-...jar` argument list."""
    args = [java, "-Dfile.encoding=UTF-8", _log_level_flag(options)]

    if options.java_debug_port:
        args.append(
            f"-agentlib:jdwp=transport=dt_socket,server=y,suspend=y,address={options.java_debug_port}",
        )

    args.extend(_system_properties(options))
    args.extend(["-jar", str(jar)])

    if options.server_port:
        args.extend(["-serverPort", str(options.server_port)])
    if options.proxy_port:
        args.extend(["-proxyPort", str(options.proxy_port)])
    if options.proxy_remote_port:
        args.extend(["-proxyRemotePort", str(options.proxy_remote_port)])
    if options.proxy_remote_host:
        args.extend(["-proxyRemoteHost", options.proxy_remote_host])

    return args
