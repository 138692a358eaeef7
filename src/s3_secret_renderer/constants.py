"""Constants for the S3 Secret Renderer."""

# Manifest
SECRET_API_VERSION = "v1"
KIND_SECRET = "Secret"

# Secret data keys
DATA_KEY_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
DATA_KEY_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"

# Top-level key order of rendered documents
MANIFEST_KEY_ORDER = ("apiVersion", "kind", "metadata", "data")
METADATA_KEY_ORDER = ("name", "namespace", "labels")

# Object store types
OBJECT_STORE_LOCAL = "local"
OBJECT_STORE_MEMORY = "memory"
OBJECT_STORE_S3 = "s3"
OBJECT_STORE_GCS = "gcs"
KNOWN_OBJECT_STORE_TYPES = (OBJECT_STORE_LOCAL, OBJECT_STORE_S3, OBJECT_STORE_GCS)

# Values paths
VALUES_OBJECT_STORE_TYPE = "storage.objectStore.type"
VALUES_OBJECT_STORE_PATH = "storage.objectStore.path"
VALUES_ACCESS_KEY_ID = "storage.objectStore.s3.accessKeyId"
VALUES_SECRET_ACCESS_KEY = "storage.objectStore.s3.secretAccessKey"

# Labels
LABEL_CHART = "helm.sh/chart"
LABEL_NAME = "app.kubernetes.io/name"
LABEL_INSTANCE = "app.kubernetes.io/instance"
LABEL_VERSION = "app.kubernetes.io/version"
LABEL_MANAGED_BY = "app.kubernetes.io/managed-by"

# Kubernetes name limit for helper-generated names
MAX_NAME_LENGTH = 63

# Chart defaults
DEFAULT_CHART_NAME = "object-store"
DEFAULT_CHART_VERSION = "0.1.0"
DEFAULT_RELEASE_NAME = "release-name"
DEFAULT_NAMESPACE = "default"
DEFAULT_RELEASE_SERVICE = "Helm"

# Template sources
TEMPLATE_SECRET = "templates/secret.yaml"
CHART_FILE = "Chart.yaml"
VALUES_FILE = "values.yaml"

# Metrics
METRICS_PREFIX = "s3_secret_renderer"
