from enum import Flag


class Compliant(Flag):
    '''It indicates which degree of compliantness the data must reflect the format'''
    NONE   = 0
    LENGTH = 1 << 0
    MAGIC  = 1 << 1
    TAG    = 1 << 2
