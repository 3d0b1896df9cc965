from __future__ import annotations

EXAMPLE_POLICIES = """\
# Example Network Policy
apiVersion: networking.k8s.io/v1
kind: NetworkPolicy
metadata:
  name: api-allow
  namespace: default
spec:
  podSelector:
    matchLabels:
      app: api
  policyTypes:
  - Ingress
  - Egress
  ingress:
  - from:
    - podSelector:
        matchLabels:
          app: frontend
    ports:
    - protocol: TCP
      port: 8080
  egress:
  - to:
    - podSelector:
        matchLabels:
          app: database
    ports:
    - protocol: TCP
      port: 5432
---
# Example Admin Network Policy
apiVersion: policy.networking.k8s.io/v1alpha1
kind: AdminNetworkPolicy
metadata:
  name: cluster-network-policy
spec:
  priority: 50
  subject:
    namespaces:
      matchLabels:
        environment: production
  ingress:
  - name: allow-from-monitoring
    action: Allow
    from:
    - namespaces:
        matchLabels:
          app: monitoring
  egress:
  - name: deny-internet
    action: Deny
    to:
    - namespaces:
        matchLabels:
          external: "true"
---
# Example Baseline Admin Network Policy
apiVersion: policy.networking.k8s.io/v1alpha1
kind: BaseAdminNetworkPolicy
metadata:
  name: default
spec:
  subject:
    namespaces: {}
  ingress:
  - name: deny-all-ingress
    action: Deny
    from:
    - namespaces: {}
    ports:
    - portRange:
        protocol: TCP
        start: 1
        end: 1024
"""
