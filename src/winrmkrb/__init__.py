"""winrmkrb -- WinRM remote shell client with Kerberos authentication.

Opens a command shell on a Windows host over WS-Management (SOAP over
HTTP), runs commands in it and collects their output. Requests are
authenticated with a Kerberos/SPNEGO ``Negotiate`` handshake.
"""

__version__ = "0.1.0"
