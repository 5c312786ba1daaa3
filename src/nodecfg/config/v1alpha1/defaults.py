# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodecfg/config/v1alpha1/defaults.py

from datetime import timedelta

KUBERNETES_VERSION = "1.20.1"
ETCD_VERSION = "3.4.14"
COREDNS_VERSION = "1.7.0"

KUBELET_IMAGE = f"ghcr.io/talos-systems/kubelet:v{KUBERNETES_VERSION}"
API_SERVER_IMAGE = f"k8s.gcr.io/kube-apiserver:v{KUBERNETES_VERSION}"
CONTROLLER_MANAGER_IMAGE = f"k8s.gcr.io/kube-controller-manager:v{KUBERNETES_VERSION}"
SCHEDULER_IMAGE = f"k8s.gcr.io/kube-scheduler:v{KUBERNETES_VERSION}"
PROXY_IMAGE = f"k8s.gcr.io/kube-proxy:v{KUBERNETES_VERSION}"
ETCD_IMAGE = f"gcr.io/etcd-development/etcd:v{ETCD_VERSION}"
COREDNS_IMAGE = f"k8s.gcr.io/coredns:{COREDNS_VERSION}"
INSTALLER_IMAGE = "ghcr.io/talos-systems/installer:latest"

LOCAL_API_SERVER_PORT = 6443
DNS_DOMAIN = "cluster.local"
POD_SUBNET = "10.244.0.0/16"
SERVICE_SUBNET = "10.96.0.0/12"
CNI_NAME = "flannel"
PROXY_MODE = "iptables"

NAMESERVERS = ("1.1.1.1", "8.8.8.8")
TIME_SERVER = "pool.ntp.org"
INSTALL_DISK = "/dev/sda"

ADMIN_KUBECONFIG_CERT_LIFETIME = timedelta(days=365)

MACHINE_TYPES = ("init", "controlplane", "join")
FILE_OPS = ("create", "append")
