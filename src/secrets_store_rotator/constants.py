"""Constants for the secrets-store rotation controller."""

# API Group
API_GROUP = "secrets-store.csi.x-k8s.io"
API_VERSION = "v1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds and plurals
KIND_SECRET_PROVIDER_CLASS = "SecretProviderClass"
KIND_SECRET_PROVIDER_CLASS_POD_STATUS = "SecretProviderClassPodStatus"
PLURAL_SECRET_PROVIDER_CLASSES = "secretproviderclasses"
PLURAL_SECRET_PROVIDER_CLASS_POD_STATUSES = "secretproviderclasspodstatuses"

# CSI driver registered for secrets-store volumes
CSI_DRIVER_NAME = "secrets-store.csi.k8s.io"
VOLUME_ATTRIBUTE_SECRET_PROVIDER_CLASS = "secretProviderClass"

# Labels
LABEL_NODE_NAME = "internal.secrets-store.csi.k8s.io/node-name"

# Parameters injected into every mount request so the provider sees the same
# attributes it receives on the initial NodePublishVolume call
CSI_POD_NAME = "csi.storage.k8s.io/pod.name"
CSI_POD_NAMESPACE = "csi.storage.k8s.io/pod.namespace"
CSI_POD_UID = "csi.storage.k8s.io/pod.uid"
CSI_POD_SERVICE_ACCOUNT = "csi.storage.k8s.io/serviceAccount.name"

# File mode for mounted files (0644)
FILE_PERMISSION = 0o644

# Field Manager / event source
FIELD_MANAGER = "secrets-store-rotator"
CONTROLLER_NAME = "rotation"

# Retry policy
MAX_NUM_OF_REQUEUES = 5
REQUEUE_DELAY_SECONDS = 10.0

# Bounded local retries for status writes and secret patches
WRITE_BACKOFF_STEPS = 5
WRITE_BACKOFF_DURATION_SECONDS = 0.001
WRITE_BACKOFF_FACTOR = 1.0
WRITE_BACKOFF_JITTER = 0.1

# Pod phases that end the pod's life
POD_PHASE_SUCCEEDED = "Succeeded"
POD_PHASE_FAILED = "Failed"

# Event types
EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"

# Event Reasons
EVENT_REASON_MOUNT_ROTATION_FAILED = "MountRotationFailed"
EVENT_REASON_MOUNT_ROTATION_COMPLETE = "MountRotationComplete"
EVENT_REASON_SECRET_ROTATION_FAILED = "SecretRotationFailed"
EVENT_REASON_SECRET_ROTATION_COMPLETE = "SecretRotationComplete"

# Error reasons (classification for metrics, events and retry policy)
REASON_FAILED_TO_ROTATE = "FailedToRotate"
REASON_POD_NOT_FOUND = "PodNotFound"
REASON_SPC_NOT_FOUND = "SecretProviderClassNotFound"
REASON_SPC_POD_STATUS_NOT_FOUND = "SecretProviderClassPodStatusNotFound"
REASON_POD_VOLUME_NOT_FOUND = "PodVolumeNotFound"
REASON_UNEXPECTED_TARGET_PATH = "UnexpectedTargetPath"
REASON_NODE_PUBLISH_SECRET_REF_NOT_FOUND = "NodePublishSecretRefNotFound"
REASON_FAILED_TO_CREATE_PROVIDER_CLIENT = "FailedToCreateProviderClient"
REASON_STATUS_UPDATE_FAILED = "StatusUpdateFailed"
REASON_SECRET_PATCH_FAILED = "SecretPatchFailed"
REASON_SECRET_VALIDATION_FAILED = "SecretValidationFailed"
REASON_MOUNTED_FILES_READ_FAILED = "MountedFilesReadFailed"
