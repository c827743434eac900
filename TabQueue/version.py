def get_version() -> str:
    """
    Returns the version details. Do not Interfere with this !

    :return: The version details in the format 'vMAJOR.MINOR.PATCH-STATE'
    :rtype: str
    """
    MAJOR = "1"
    MINOR = "0"
    PATCH = "0"
    STATE = "beta"

    return f"v{MAJOR}.{MINOR}.{PATCH}-{STATE}"
