"""megamounds.integrations — External collaborator gateways.

Services reach storage outside the database only through a gateway in this
package, never by touching the filesystem or a bucket directly.

Current gateways:
  file_storage.LocalFileStorage — task photo blobs on local disk
"""
