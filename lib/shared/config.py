import json;
from typing import Self;
import logging;
import os;
import yaml;


Log = logging.getLogger(__name__);

class Config(object):
    '''
    A nested dictionary of settings, read with GetValue for top level keys and GetPath for "section.key" paths.

    Config.from_file picks JSON or YAML by the file extension. A missing file is written out
    from the given default text first, a file that fails to parse is reported and left untouched.
    '''
    DECODE_ERRORS = (ValueError,);

    def __init__(self, data = None):
        self.cfg = data if data != None else {};

    @classmethod
    def _parse(cls, text : str):
        raise NotImplementedError();

    @classmethod
    def from_file(cls, path, default : str = None):
        if cls is Config:
            ext = os.path.splitext(path)[1].lower();
            loader = YamlConfig if ext in (".yaml", ".yml") else JsonConfig;
            return loader.from_file(path, default);
        try:
            with open(path, "rt") as f:
                data = cls._parse(f.read());
        except FileNotFoundError:
            if default == None:
                Log.error(f"Config file {path} does not exist");
                return None;
            Log.warning(f"Config file {path} does not exist, writing defaults");
            with open(path, "wt") as f:
                f.write(default);
            return cls.from_string(default);
        except cls.DECODE_ERRORS as e:
            Log.error(f"Unable to parse config file {path} : {e}");
            return None;
        Log.info(f"Loaded config from {path}");
        return cls(data if data != None else {});

    @classmethod
    def from_string(cls, target : str) -> Self:
        if target == None:
            return None;
        try:
            data = cls._parse(target);
        except cls.DECODE_ERRORS as e:
            Log.error(f"Unable to parse config text : {e}");
            return None;
        return cls(data if data != None else {});

    @classmethod
    def FromString(cls, target : str, format : str = "json") -> Self:
        if format != None and format.lower() in ("yaml", "yml"):
            return YamlConfig.from_string(target);
        return JsonConfig.from_string(target);

    def GetValue(self, paramName : str, defaultValue : any):
        return self.cfg.get(paramName, defaultValue);

    def GetPath(self, path : str, defaultValue : any):
        node = self.cfg;
        for key in path.split("."):
            if not isinstance(node, dict) or not key in node:
                Log.debug(f"Config path {path} is not set, defaulting to {defaultValue}");
                return defaultValue;
            node = node[key];
        return node;

    def SetPath(self, path : str, value : any):
        keys = path.split(".");
        node = self.cfg;
        for key in keys[:-1]:
            if not isinstance(node.get(key), dict):
                node[key] = {};
            node = node[key];
        node[keys[-1]] = value;


class JsonConfig(Config):
    DECODE_ERRORS = (json.JSONDecodeError,);

    @classmethod
    def _parse(cls, text : str):
        return json.loads(text);


class YamlConfig(Config):
    # the built-in default text is JSON, which YAML reads as well
    DECODE_ERRORS = (yaml.YAMLError,);

    @classmethod
    def _parse(cls, text : str):
        return yaml.safe_load(text);
