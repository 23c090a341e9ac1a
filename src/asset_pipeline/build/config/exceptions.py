"""
Exception classes with built-in guidance for configuration loading.
"""
import sys


class ConfigException(Exception):
    """Base exception for all configuration errors."""
    def __init__(self, message: str, error_type: str = None, config_path: str = None):
        super().__init__(message)
        self.error_type = error_type
        self.config_path = config_path
        self.guidance = self._generate_guidance()

    def _get_current_command(self):
        """Get the current command being executed."""
        if len(sys.argv) > 0:
            executable = sys.argv[0].split('/')[-1]
            args = sys.argv[1:]
            if args:
                return f"{executable} {' '.join(args)}"
            else:
                return executable
        return "unknown command"

    def _generate_guidance(self):
        """Override in subclasses to provide specific guidance."""
        return f"""
❌ Configuration error: {self}
💡 Check your configuration and try again
"""


class ConfigFileNotFoundException(ConfigException):
    """Raised when the configuration file does not exist."""
    def __init__(self, message: str, config_path: str = None):
        super().__init__(message, error_type="config_not_found", config_path=config_path)

    def _generate_guidance(self):
        command = self._get_current_command()
        return f"""
❌ Configuration file '{self.config_path}' not found
💡 Resolve this in one of the following ways:
   1. Create it in the directory you run '{command}' from (see assets-config.example.json)
   2. Or point to an existing file: export ASSET_PIPELINE_CONFIG=path/to/assets-config.json
"""


class ConfigParseException(ConfigException):
    """Raised when the configuration file is not valid JSON (comments allowed)."""
    def __init__(self, message: str, config_path: str = None):
        super().__init__(message, error_type="config_parse", config_path=config_path)

    def _generate_guidance(self):
        return f"""
❌ Please check the config file '{self.config_path}' exists and has no errors.
   {self}
💡 The file must contain a single JSON object. // and /* */ comments are allowed.
"""


class ConfigValidationException(ConfigException):
    """Raised when the parsed configuration does not match the expected schema."""
    def __init__(self, message: str, config_path: str = None, fields: list = None):
        self.fields = fields or []
        super().__init__(message, error_type="config_validation", config_path=config_path)

    def _generate_guidance(self):
        fields = ', '.join(self.fields) if self.fields else 'Unknown'
        return f"""
❌ Invalid settings in config file '{self.config_path}'
   Offending keys: {fields}
💡 Fix the listed keys and try again:
{self}
"""
