# Every call into python-ldap goes through this module so that the tests can
# swap ``ldapclient.ldap.initialize`` for python-ldap-faker's fake without
# touching the real ``ldap`` package.
import ldap
import ldap.dn
import ldap.sasl
from ldap import *  # noqa: F403
from ldap import dn, sasl  # noqa: F401

__version__ = ldap.__version__
