from commands.resolver import is_device_compatible, normalize_text, resolve_command

__all__ = ["is_device_compatible", "normalize_text", "resolve_command"]
