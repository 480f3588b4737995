#!/usr/bin/env python
# coding: utf-8

from . import _common

KEY_DECODER = "decoder"

_ESCAPES = (("\\t", "\t"), ("\\n", "\n"))


def load_from_config(fp, section=None):
    """Load decoder options from configparser text file.
    It basically follow standard configparser grammer
    (without interpolation), but some conveniences are added
    for delimiters and layouts:
    surrounding double quotes are removed (to keep spaces),
    and ``\\t`` and ``\\n`` are replaced with tab and line feed.

    | e.g.,
    | [access]
    | decoder = delimited
    | field_delimiter = \\t
    | field_names = time\\tclient\\tstatus
    | timestamp_field_index = 1
    | timestamp_format = %Y-%m-%dT%H:%M:%S%z

    Args:
        fp (str): file path of configparser text file.
        section (str, optional): section name.
            If not given, the first section is used.

    Returns:
        dict: option name to value (str).
    """

    def _get_value(conf, section, option):
        s = conf[section][option].strip()
        if len(s) >= 2 and s[0] == s[-1] == '"':
            s = s[1:-1]
        for escaped, char in _ESCAPES:
            s = s.replace(escaped, char)
        return s

    import configparser
    conf = configparser.ConfigParser(interpolation=None)
    with open(fp) as f:
        conf.read_file(f)

    if section is None:
        sections = conf.sections()
        if len(sections) == 0:
            msg = "no section in {0}".format(fp)
            raise _common.ParserDefinitionError(msg)
        section = sections[0]
    elif not conf.has_section(section):
        msg = "section {0} not found in {1}".format(section, fp)
        raise _common.ParserDefinitionError(msg)

    return {option: _get_value(conf, section, option)
            for option in conf.options(section)}


def config_getter(mapping):
    """Get a get_config function of a decoder from a dict.

    Empty strings are considered as missing options.

    Args:
        mapping (dict): option name to value.

    Returns:
        callable
    """
    def _get_config(name):
        value = mapping.get(name)
        if value == "":
            return None
        return value

    return _get_config
