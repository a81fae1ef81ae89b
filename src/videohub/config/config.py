"""
Layered settings for the controller and for discovery.

Settings are read from up to four files named after the settings, each one overriding those before it:

- <name>.default.cfg    the defaults shipped with this package
- <name>.<platform>.cfg platform overrides, e.g. videohub.linux.cfg
- ~/<name>.cfg          the user's overrides
- <name>.cfg            site overrides, beside the defaults

The merged settings are validated against <name>.schema.cfg, which also converts each value to its type.
"""
import logging
import os
import platform

from configobj import ConfigObj, ConfigObjError, flatten_errors
from validate import Validator

logger = logging.getLogger(__name__)

config_extension = '.cfg'

# the name of the settings shipped with this package
settings_name = 'videohub'


def layer_filename(name, directory=None, layer=None):
    """
    The file holding one layer of the named settings. Without a layer, this is the site file.
    >>> layer_filename('videohub', layer='default')
    'videohub.default.cfg'
    >>> layer_filename('videohub')
    'videohub.cfg'
    """
    base = name + '.' + layer if layer else name
    return os.path.join(directory or '', base + config_extension)


def read_config_file(file, must_exist=True):
    """
    Reads a single configuration file.
    :param must_exist: when False, a missing file reads as an empty configuration.
    :raises IOError: when the file must exist and does not
    :raises ConfigObjError: when the file cannot be parsed. The message names the file.
    """
    if not must_exist and not os.path.exists(file):
        return ConfigObj()
    try:
        return ConfigObj(file, interpolation='Template', file_error=True)
    except ConfigObjError as e:
        raise type(e)("%s at %s" % (e, file))


def read_schema_file(file):
    # schema checks such as "integer(min=1, default=2)" are kept whole rather than split into lists
    return ConfigObj(file, _inspec=True, file_error=True)


def platform_name(system=None):
    """
    The name used for the platform layer.
    >>> platform_name('Windows')
    'windows'
    >>> platform_name('Darwin')
    'osx'
    """
    name = (system or platform.system()).lower()
    return 'osx' if name == 'darwin' else name


def config_layers(name, directory, user_directory='~'):
    """ the files that make up the named settings, lowest precedence first """
    return [layer_filename(name, directory, 'default'),
            layer_filename(name, directory, platform_name()),
            layer_filename(name, os.path.expanduser(user_directory)),
            layer_filename(name, directory)]


def describe_failure(sections, key, error):
    path = '/'.join(list(sections) + ([key] if key else []))
    return "%s: %s" % (path, error or 'missing')


def load_config(name, directory, user_directory='~'):
    """
    Merges the layers of the named settings and validates the result.
    Layers that do not exist are skipped. The schema must exist.
    :param directory: the location of the default, platform, site and schema files
    :param user_directory: the location of the user's overrides
    :return: the validated ConfigObj
    :raises ConfigObjError: when a value does not satisfy the schema
    """
    config = ConfigObj()
    for file in config_layers(name, directory, user_directory):
        layer = read_config_file(file, must_exist=False)
        if layer:
            logger.debug("settings %s: applying %s" % (name, file))
        config.merge(layer)

    config.configspec = read_schema_file(layer_filename(name, directory, 'schema'))
    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        failures = [describe_failure(*failure) for failure in flatten_errors(config, result)]
        for failure in failures:
            logger.error("settings %s: %s" % (name, failure))
        raise ConfigObjError("settings %s failed validation: %s" % (name, "; ".join(failures)))
    return config


def default_directory():
    """ the directory holding the settings shipped with this package """
    return os.path.dirname(os.path.abspath(__file__))


def load_settings(directory=None, user_directory='~'):
    """
    Loads the videohub settings.
    :param directory: the directory holding the default, site and schema files. Defaults to this package.
    :return: the validated settings. Sections are [controller] and [discovery].
    """
    return load_config(settings_name, directory or default_directory(), user_directory)


def apply_conf(conf, target):
    """
    Copies settings onto the attributes of an object.
    Settings without a matching attribute on the target are ignored.
    """
    for key, value in conf.items():
        if hasattr(target, key):
            setattr(target, key, value)
        else:
            logger.debug("ignoring setting %s for %s" % (key, type(target).__name__))
