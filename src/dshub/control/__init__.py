"""Control plane - datastore lifecycle operations.

Entry point: dshub.control.lifecycle.VmfsDatastoreResource
"""
