from peewee import Proxy

# Bound to a concrete database by ``database.init.init_from_env``.
db = Proxy()
