import logging;
import os;

Log = logging.getLogger(__name__);

CATEGORY_MAP = "map";
CATEGORY_MODE = "mode";

# Movie Battles II game modes and their mbmode ids
MBMODE_ID_MAP = {
    'open' : 0,
    'semiauthentic' : 1,
    'fullauthentic' : 2,
    'duel' : 3,
    'legends' : 4
};

def GetModeValues() -> set[str]:
    values = set(MBMODE_ID_MAP.keys());
    values.update(str(modeId) for modeId in MBMODE_ID_MAP.values());
    return values;

def ModeToId(value : str) -> int:
    value = value.strip().lower();
    if value in MBMODE_ID_MAP:
        return MBMODE_ID_MAP[value];
    modeId = int(value);
    if not modeId in MBMODE_ID_MAP.values():
        raise ValueError("Unknown mbmode id %d" % modeId);
    return modeId;

def LoadMapList(path : str) -> set[str]:
    """ One map name per line, blank lines and # comments are skipped """
    maps = set();
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for line in f:
            line = line.strip();
            if line and not line.startswith('#'):
                maps.add(line);
    Log.info("Loaded %d maps from %s", len(maps), os.path.abspath(path));
    return maps;

def BuildCatalog(mapList : set[str], modes : set[str] = None) -> dict[str, set[str]]:
    if modes == None:
        modes = GetModeValues();
    return { CATEGORY_MAP : set(mapList), CATEGORY_MODE : set(modes) };
