r"""@package formulakit.config

Configuration of the formula system.

The default settings are read from the `config.cfg` file shipped next to
this module. They can be overridden by a `config.mine.cfg` file in the same
folder (not shipped) and by a file named in the environment variable
`FORMULAKIT_CONFIG`, read in this order.

@b Examples

\code
    [formula]
    evaluator = compiled
    simplify_derivative = no
\endcode
"""

from configparser import ConfigParser
import logging
import os


__all__ = [
    "Config",
    "get_config",
    "reload",
    "EVALUATOR_KINDS",
]


op = os.path

## Name of the environment variable pointing to an extra config file.
ENV_VAR = "FORMULAKIT_CONFIG"

## Valid values of the `evaluator` option.
EVALUATOR_KINDS = ("tree", "real", "compiled")

_SECTION = "formula"

_config = None


class Config(object):
    r"""Settings read from the configuration files."""

    def __init__(self, root_dir=None, extra_file=None):
        r"""Read the configuration.

        @param root_dir
            Folder containing `config.cfg` and optionally `config.mine.cfg`.
            Defaults to the folder of this module.
        @param extra_file
            Further file to read last. Defaults to the value of the
            environment variable `FORMULAKIT_CONFIG` (if set).
        """
        if root_dir is None:
            root_dir = op.dirname(op.realpath(__file__))
        if extra_file is None:
            extra_file = os.environ.get(ENV_VAR)
        config = ConfigParser()
        fname = op.join(root_dir, 'config.cfg')
        with open(fname) as cfg_file:
            config.read_file(cfg_file)
        files = [fname]
        optional = [op.join(root_dir, "config.mine.cfg")]
        if extra_file:
            optional.append(extra_file)
        files.extend(config.read(optional))
        logging.info("Read configuration from: %s", ", ".join(files))
        ## The underlying `ConfigParser` object.
        self.config = config
        ## Default evaluator kind used by formula.Formula.
        self.evaluator = config.get(_SECTION, "evaluator").strip().lower()
        if self.evaluator not in EVALUATOR_KINDS:
            raise ValueError("Unknown evaluator '%s' in configuration. "
                             "Valid values are: %s"
                             % (self.evaluator, ", ".join(EVALUATOR_KINDS)))
        ## Whether derivatives are simplified unless requested otherwise.
        self.simplify_derivative = config.getboolean(
            _SECTION, "simplify_derivative"
        )
        ## Whether parser.parse() optimizes the formula right away.
        self.optimize_after_parse = config.getboolean(
            _SECTION, "optimize_after_parse"
        )

    def __repr__(self):
        return ("Config(evaluator=%r, simplify_derivative=%r, "
                "optimize_after_parse=%r)"
                % (self.evaluator, self.simplify_derivative,
                   self.optimize_after_parse))


def get_config():
    r"""Return the (cached) configuration, reading it on first use."""
    global _config # pylint: disable=global-statement
    if _config is None:
        _config = Config()
    return _config


def reload(root_dir=None, extra_file=None):
    r"""Re-read the configuration files and return the new configuration."""
    global _config # pylint: disable=global-statement
    _config = Config(root_dir=root_dir, extra_file=extra_file)
    return _config
