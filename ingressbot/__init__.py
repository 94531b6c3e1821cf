"""ingress-bot.

Polls the cluster for Services carrying ingress annotations and keeps a set of
managed Ingress objects in line with them:
 - one ingress per first host, shared by every service naming that host
 - conflicting namespaces or classes stop the loop
 - only ingresses carrying the ownership label are touched
"""

__version__ = "0.1.0"
