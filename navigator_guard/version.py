"""Navigator Guard Meta information.
   Navigator Guard protects session data at rest and throttles
   write-like endpoints.
"""
__title__ = 'navigator_guard'
__description__ = (
   'Navigator Guard encrypts session-scoped values before they reach '
   'local storage and rate-limits abusive callers.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/navigator-guard'
