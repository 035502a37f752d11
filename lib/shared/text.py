import re

# default aka white, is 7
COLOR_NAMES = \
{
    "black"     : "^0",
    "red"       : "^1",
    "green"     : "^2",
    "yellow"    : "^3",
    "blue"      : "^4",
    "lblue"     : "^5",
    "pink"      : "^6",
    "default"   : "^7",
    "orange"    : "^8",
    "gray"      : "^9",
};

COLOR_CODE_PATTERN = re.compile(r"\^\d");

def ColorizeText(text, colorName, originalColorName = "default") -> str:
    return COLOR_NAMES[colorName] + text + COLOR_NAMES[originalColorName];

def StripColorCodes(text) -> str:
    return COLOR_CODE_PATTERN.sub('', text);

# splits a message into pieces of at most size characters, preferring to break on spaces
def ChunkMessage(message : str, size : int) -> list[str]:
    result = [];
    while len(message) > size:
        splitIndex = message.rfind(' ', 0, size);
        if splitIndex <= 0:
            splitIndex = size;
        result.append(message[:splitIndex]);
        message = message[splitIndex:].lstrip();
    if len(message) > 0 or len(result) == 0:
        result.append(message);
    return result;
