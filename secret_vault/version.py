"""Secret Vault Meta information.
   Secret Vault shares encrypted secrets among users of a file-system vault.
"""
__title__ = 'secret_vault'
__description__ = (
   'Secret Vault shares encrypted secrets among the users '
   'of a file-system vault.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/secret-vault'
