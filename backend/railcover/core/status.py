from enum import IntEnum


class Status(IntEnum):
    OK = 0               # all good
    SEV = 10             # journey contains a rail replacement service
    TIME = 20            # journey not in the allowed booking window
    PROBABILITY = 30     # delay probability above the cap
    MISSING_DELAY = 40   # reserved: delay data not yet available, resubmit later
    ERROR = 100          # validation, upstream or anything else
