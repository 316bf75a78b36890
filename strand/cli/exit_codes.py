"""Standard exit codes for the strand CLI.

Scripts wrapping strand can rely on these values staying stable.
"""


class ExitCode:
    """Standard exit codes for strand.
    
    These codes follow common Unix conventions where possible:
    - 0: Success
    - 1: General error, including an unresolvable home/config directory
      and a failed plugin download
    - 130: Script terminated by Ctrl+C (SIGINT)
    
    Strand-specific codes:
    - 2: Configuration file could not be loaded or saved
    - 3: Plugin installation (extraction) failed
    - 6: Plugin directory could not be reset
    - 7: Invalid argument
    """
    
    SUCCESS = 0
    
    GENERAL_ERROR = 1
    
    CONFIGURATION_ERROR = 2
    INSTALL_ERROR = 3
    STORAGE_ERROR = 6
    INVALID_ARGUMENT = 7
    
    # Signal-based exits (128 + signal number)
    CANCELLED = 130  # Ctrl+C (SIGINT = 2)
