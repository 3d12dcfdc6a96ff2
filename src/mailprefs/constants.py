"""Sort criteria codes and preference names."""

# Sort criteria.
SORT_ARRIVAL = 1
SORT_CC = 2
SORT_DATE = 3
SORT_FROM = 4
SORT_SIZE = 6
SORT_SUBJECT = 7
SORT_TO = 8
SORT_THREAD = 9
SORT_SEQUENCE = 10

# Date sort that falls back to arrival time when the Date header is missing.
IMAP_SORT_DATE = 100

# Sort directions.
SORT_ASCENDING = 0
SORT_DESCENDING = 1

# Sort codes written by the previous generation of the client.
LEGACY_SORTARRIVAL = 1
LEGACY_SORTDATE = 2
LEGACY_SORTTHREAD = 161

SORT_NAMES = {
    "arrival": SORT_ARRIVAL,
    "cc": SORT_CC,
    "date": IMAP_SORT_DATE,
    "sentdate": SORT_DATE,
    "from": SORT_FROM,
    "size": SORT_SIZE,
    "subject": SORT_SUBJECT,
    "to": SORT_TO,
    "thread": SORT_THREAD,
    "sequence": SORT_SEQUENCE,
}

SORT_DIR_NAMES = {
    "asc": SORT_ASCENDING,
    "desc": SORT_DESCENDING,
}

# Preference names.
SORTPREF = "sortpref"
SORTBY = "sortby"
SORTDIR = "sortdir"
EXPANDED_FOLDERS = "expanded_folders"
NAV_POLL = "nav_poll"
NAV_POLL_ALL = "nav_poll_all"
SEND_MDN = "send_mdn"
MAIL_HDR = "mail_hdr"
TIME_FORMAT = "time_format"
DATE_FORMAT = "date_format"
ADD_SOURCE = "add_source"
USE_TRASH = "use_trash"

INBOX = "INBOX"


def sort_name(code: int | None) -> str:
    """Reverse lookup of a sort code for display."""
    if code is None:
        return "-"
    for name, value in SORT_NAMES.items():
        if value == code:
            return name
    return str(code)
