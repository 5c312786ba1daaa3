import textwrap

import pytest


VALID_CONFIG = textwrap.dedent("""
    version: v1alpha1
    debug: false
    persist: true
    machine:
      type: controlplane
      token: 328hom.uqjzh6jnn2eie9oi
      ca:
        crt: Y3J0
        key: a2V5
      certSANs: []
      kubelet:
        extraArgs:
          node-labels: role=cp
      network:
        hostname: cp-1
        interfaces:
          - interface: eth0
            cidr: 192.168.2.5/24
            routes:
              - network: 0.0.0.0/0
                gateway: 192.168.2.1
            mtu: 9000
          - interface: eth1
            dhcp: true
            dhcpOptions:
              routeMetric: 100
            vlans:
              - vlanId: 10
                cidr: 10.0.10.2/24
              - vlanId: 20
                dhcp: true
          - interface: bond0
            dhcp: true
            bond:
              mode: 802.3ad
              interfaces: [eth2, eth3]
              lacpRate: fast
              miimon: 100
              xmitHashPolicy: layer3+4
          - interface: dummy0
            dummy: true
            cidr: 169.254.2.53/32
        nameservers: [9.8.7.6]
        extraHostEntries:
          - ip: 192.168.1.100
            aliases: [test, test.domain.tld]
      disks:
        - device: /dev/sdb
          partitions:
            - size: 100000000
              mountpoint: /var/a
            - size: 0
              mountpoint: /var/b
      install:
        disk: /dev/sda
        image: ghcr.io/talos-systems/installer:latest
        bootloader: true
        wipe: false
      files:
        - content: "hello"
          permissions: 420
          path: /var/etc/hello
          op: create
      time:
        servers: [time.cloudflare.com]
      sysctls:
        net.ipv4.ip_forward: 1
      registries:
        mirrors:
          docker.io:
            endpoints: [https://registry.local, https://registry-1.docker.io]
          "*":
            endpoints: [https://cache.local]
        config:
          registry.local:
            tls:
              insecureSkipVerify: true
            auth:
              username: user
              password: pass
    cluster:
      controlPlane:
        endpoint: https://1.2.3.4:6443
        localAPIServerPort: 443
      clusterName: test
      network:
        cni:
          name: flannel
        dnsDomain: cluster.local
        podSubnets: [10.244.0.0/16]
        serviceSubnets: [10.96.0.0/12]
      token: wlzjyw.bei2zfylhs2by0wd
      aescbcEncryptionSecret: z01mye6j16bspJYtTB/5SFX8j7Ph4JXxM2Xuu4vsBPM=
      ca:
        crt: Y3J0
        key: a2V5
      apiServer:
        certSANs: [1.2.3.4]
      proxy:
        mode: ipvs
      etcd:
        ca:
          crt: Y3J0
          key: a2V5
      adminKubeconfig:
        certLifetime: 1h
""")


@pytest.fixture
def valid_config_text() -> str:
    return VALID_CONFIG


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    monkeypatch.delenv("NODECFG_SECRETS_FILE", raising=False)
    f = tmp_path / "machine.yaml"
    f.write_text(VALID_CONFIG)
    return f
