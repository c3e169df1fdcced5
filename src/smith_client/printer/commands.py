"""
Device command tokens understood by the printer firmware.

The tokens are opaque to the client; they are written one per line to the
printer's command pipe.
"""

# Show the "loading print data" screen
CMD_PRINT_DATA_LOAD = 'SHOWPRINTDATALOADING'

# Unpack and validate the single file in the print data directory
CMD_PROCESS_PRINT_DATA = 'PROCESSPRINTDATA'

# Load settings from the print settings file
CMD_APPLY_PRINT_SETTINGS = 'APPLYPRINTSETTINGS'
