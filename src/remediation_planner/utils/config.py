import os
import yaml
from dotenv import find_dotenv, load_dotenv
from remediation_planner.utils.constants import (
    DEFAULT_CRITICAL_MODULES, DEFAULT_DEPENDENCIES, DEFAULT_ENV_PREFIX,
    DEFAULT_MAX_RETRIES, DEFAULT_PRIORITIES, DEFAULT_RETRY_DELAY_SECONDS,
    MODULE_CATALOG
)
from remediation_planner.utils.exceptions import ConfigurationError, InvalidPolicyError
from remediation_planner.utils.models import FailurePolicy


def _ensure_section(config, name):
    # A key present with no value loads as None from YAML
    if not isinstance(config.get(name), dict):
        config[name] = {}
    return config[name]


def _load_config_defaults(config):
    # Ensure we have a dict to work with
    if not isinstance(config, dict):
        config = {}

    # Logging defaults
    log = _ensure_section(config, 'logging')
    log['file'] = log.get('file', 'logs/remediation.log')
    log['level'] = log.get('level', 'INFO')

    # Planning defaults: explicit priorities override the fixed table
    planning = _ensure_section(config, 'planning')
    if not isinstance(planning.get('priorities'), dict):
        planning['priorities'] = {}

    # Module dependency edges; a missing section means the default graph
    modules = _ensure_section(config, 'modules')
    if 'dependencies' not in modules or modules['dependencies'] is None:
        modules['dependencies'] = {name: list(deps) for name, deps in DEFAULT_DEPENDENCIES.items()}

    # Failure policy defaults
    fp = _ensure_section(config, 'failure_policy')
    fp['max_retries'] = fp.get('max_retries', DEFAULT_MAX_RETRIES)
    fp['retry_delay_seconds'] = fp.get('retry_delay_seconds', DEFAULT_RETRY_DELAY_SECONDS)
    fp['abort_on_critical_failure'] = fp.get('abort_on_critical_failure', True)
    fp['continue_on_non_critical_failure'] = fp.get('continue_on_non_critical_failure', True)
    if 'critical_modules' not in fp or fp['critical_modules'] is None:
        fp['critical_modules'] = list(DEFAULT_CRITICAL_MODULES)

    # Report output defaults
    out = _ensure_section(config, 'output')
    out['dir'] = out.get('dir', './output')
    out['compress'] = out.get('compress', False)

    config['env_prefix'] = config.get('env_prefix', DEFAULT_ENV_PREFIX)

    return config


def read_config_from_yaml(config_file="config/config.yaml"):
    try:
        with open(config_file, 'r', encoding='utf-8') as file:
            config = yaml.safe_load(file) or {}
    except Exception as e:  # pylint: disable=broad-exception-caught
        print(f"Error reading configuration from {config_file}: {e}")
        config = {}
    config = _load_config_defaults(config)
    return config


def _env_number(name, raw, cast):
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"Environment variable {name} must be a number, got '{raw}'") from e


def apply_env_overrides(config):
    """Overlay environment variables on a loaded configuration.

    Priority: ENV var > config file. A .env file in the working directory is
    loaded first if present. Variable names are prefixed with
    ``config['env_prefix']`` (default ``REMEDIATION_``).

    Args:
        config: Configuration dict, already passed through the defaults

    Returns:
        dict: The same configuration dict with overrides applied

    Raises:
        ConfigurationError: If a numeric variable cannot be parsed
    """
    load_dotenv(find_dotenv(usecwd=True))
    prefix = config.get('env_prefix', DEFAULT_ENV_PREFIX)

    log_level = os.environ.get(prefix + 'LOG_LEVEL')
    if log_level:
        config['logging']['level'] = log_level.upper()

    max_retries = os.environ.get(prefix + 'MAX_RETRIES')
    if max_retries:
        config['failure_policy']['max_retries'] = _env_number(prefix + 'MAX_RETRIES', max_retries, int)

    retry_delay = os.environ.get(prefix + 'RETRY_DELAY_SECONDS')
    if retry_delay:
        config['failure_policy']['retry_delay_seconds'] = _env_number(
            prefix + 'RETRY_DELAY_SECONDS', retry_delay, float
        )

    output_dir = os.environ.get(prefix + 'OUTPUT_DIR')
    if output_dir:
        config['output']['dir'] = output_dir

    return config


def build_failure_policy(config):
    """Build a FailurePolicy from the ``failure_policy`` config section.

    Args:
        config: Full configuration dict or the section itself

    Returns:
        FailurePolicy: Validated, immutable policy

    Raises:
        InvalidPolicyError: If any value is out of range or critical_modules
            names a module outside the catalog
    """
    section = config.get('failure_policy', config) if isinstance(config, dict) else {}

    critical = section.get('critical_modules', DEFAULT_CRITICAL_MODULES)
    if isinstance(critical, str) or not isinstance(critical, (list, tuple, set, frozenset)):
        raise InvalidPolicyError(f"critical_modules must be a list of module names, got {critical!r}")
    unknown = sorted(set(critical) - set(MODULE_CATALOG))
    if unknown:
        raise InvalidPolicyError(f"critical_modules contains unknown module(s): {', '.join(unknown)}")

    return FailurePolicy(
        max_retries=section.get('max_retries', DEFAULT_MAX_RETRIES),
        abort_on_critical_failure=bool(section.get('abort_on_critical_failure', True)),
        continue_on_non_critical_failure=bool(section.get('continue_on_non_critical_failure', True)),
        critical_modules=frozenset(critical),
        retry_delay_seconds=section.get('retry_delay_seconds', DEFAULT_RETRY_DELAY_SECONDS),
    )


def get_priorities(config):
    """Get the effective module priority table.

    Args:
        config: Configuration dictionary

    Returns:
        dict: Module name -> priority, defaults merged with overrides

    Raises:
        ConfigurationError: If an override names an unknown module or is not an integer
    """
    overrides = config.get('planning', {}).get('priorities', {}) or {}
    priorities = dict(DEFAULT_PRIORITIES)
    for name, value in overrides.items():
        if name not in priorities:
            raise ConfigurationError(f"Priority override for unknown module '{name}'")
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(f"Priority for '{name}' must be an integer, got {value!r}")
        priorities[name] = value
    return priorities


def get_dependencies(config):
    """Get module dependency edges from configuration.

    Args:
        config: Configuration dictionary

    Returns:
        dict: Module name -> list of modules it depends on

    Raises:
        ConfigurationError: If the section is not a mapping of lists
    """
    dependencies = config.get('modules', {}).get('dependencies', DEFAULT_DEPENDENCIES)
    if not isinstance(dependencies, dict):
        raise ConfigurationError("modules.dependencies must be a mapping of module name to list")

    edges = {}
    for name, deps in dependencies.items():
        if deps is None:
            deps = []
        if isinstance(deps, str) or not isinstance(deps, (list, tuple)):
            raise ConfigurationError(f"Dependencies for '{name}' must be a list, got {deps!r}")
        edges[name] = list(deps)
    return edges
