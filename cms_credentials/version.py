"""CMS Credentials Meta information.
   CMS Credentials protects database credentials at rest with
   password-derived authenticated encryption.
"""
__title__ = 'cms_credentials'
__description__ = (
   'Encrypted credential storage and resolution '
   'for the Portfolio CMS.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 Portfolio CMS Developers'
__author__ = 'Portfolio CMS Developers'
__author_email__ = 'dev@portfolio-cms.local'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/portfolio-cms/cms-credentials'
