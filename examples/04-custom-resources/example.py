import asyncio
import os
from typing import Optional, Sequence

import kubeaccess

KUBEEXAMPLES = kubeaccess.Resource('kubeaccess.dev', 'v1', 'kubeexamples',
                                   kind='KubeExample', namespaced=True)


class KubeExampleSpec(kubeaccess.Struct):
    duration: Optional[str] = None
    items: Optional[Sequence[str]] = None


class KubeExample(kubeaccess.Object):
    spec: Optional[KubeExampleSpec] = None  # type: ignore[assignment]


async def main():
    info = kubeaccess.ConnectionInfo(
        server=os.environ.get('K8S_SERVER', 'https://localhost:6443'),
        token=os.environ.get('K8S_TOKEN'),
        insecure=True,
    )
    async with kubeaccess.Cluster(info) as cluster:
        examples = cluster.resource(KUBEEXAMPLES, KubeExample)
        obj = await examples.apply_namespaced('default', 'example1', {
            'spec': {'duration': '1m', 'items': ['item1', 'item2']},
        })
        print(obj.spec)
        status = await examples.delete_namespaced('default', 'example1')
        print(status.success)


if __name__ == '__main__':
    asyncio.run(main())
